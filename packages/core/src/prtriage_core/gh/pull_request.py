from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from github import Github, GithubException

from prtriage_core.errors import ActionFailure
from prtriage_core.models import PullRequestRef

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def describe_error(error: GithubException) -> str:
    data = error.data if isinstance(error.data, dict) else {}
    message = data.get("message") or str(error)
    return f"{error.status} {message}" if error.status else message


class PullRequestSurface(ABC):
    """The four writes a triage run may make on a pull request.

    Each one is independently fallible and raises ActionFailure; whether that
    failure ends the run is decided by the caller, not the surface.
    """

    @abstractmethod
    def post_comment(self, body: str) -> None:
        """Post a top-level conversation comment."""

    @abstractmethod
    def approve(self, body: str) -> None:
        """Submit an APPROVE review."""

    @abstractmethod
    def merge(self, method: str = "squash") -> None:
        """Merge the pull request with the given strategy."""

    @abstractmethod
    def add_label(self, label: str) -> None:
        """Attach a label to the pull request."""


class GithubPullRequestSurface(PullRequestSurface):
    def __init__(self, pull):
        self._pull = pull

    @classmethod
    def connect(cls, ref: PullRequestRef, token: str) -> GithubPullRequestSurface:
        """Open a fresh client for this run and resolve the pull request."""
        try:
            pull = get_pull(get_repo(ref.full_name, token=token), ref.number)
        except GithubException as e:
            raise ActionFailure("connect", f"could not load {ref}: {describe_error(e)}") from e
        return cls(pull)

    def post_comment(self, body: str) -> None:
        try:
            self._pull.create_issue_comment(body)
        except GithubException as e:
            raise ActionFailure("comment", describe_error(e)) from e

    def approve(self, body: str) -> None:
        try:
            self._pull.create_review(body=body, event="APPROVE")
        except GithubException as e:
            raise ActionFailure("review", describe_error(e)) from e

    def merge(self, method: str = "squash") -> None:
        try:
            status = self._pull.merge(merge_method=method)
        except GithubException as e:
            raise ActionFailure("merge", describe_error(e)) from e
        if status is not None and not status.merged:
            raise ActionFailure("merge", status.message or "GitHub reported the pull request as not merged")

    def add_label(self, label: str) -> None:
        try:
            self._pull.add_to_labels(label)
        except GithubException as e:
            raise ActionFailure("label", describe_error(e)) from e
