from __future__ import annotations

import requests

from prtriage_core.diffs.base import DEFAULT_TIMEOUT, BaseDiffSource, error_from_response
from prtriage_core.errors import ProviderUnavailable
from prtriage_core.models import PullRequestRef

_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"


class GithubDiffSource(BaseDiffSource):
    """Fetches the diff straight from the GitHub REST API."""

    def __init__(
        self,
        token: str | None,
        api_url: str = "https://api.github.com",
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        super().__init__(timeout=timeout, session=session)
        self._api_url = api_url.rstrip("/")
        self.session.headers["Accept"] = "application/vnd.github+json"
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _probe(self) -> None:
        # /rate_limit does not count against the quota and needs no scopes.
        response = self._request("GET", f"{self._api_url}/rate_limit")
        if not response.ok:
            raise ProviderUnavailable(
                f"GitHub API at {self._api_url} not available: {response.status_code} {response.reason}"
            )

    def _fetch_diff(self, ref: PullRequestRef) -> str | None:
        url = f"{self._api_url}/repos/{ref.owner}/{ref.repo}/pulls/{ref.number}"
        response = self._request("GET", url, headers={"Accept": _DIFF_MEDIA_TYPE})
        if not response.ok:
            raise error_from_response(response)
        return response.text
