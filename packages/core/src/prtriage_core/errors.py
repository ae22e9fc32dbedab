"""Error taxonomy for a triage run.

Everything raised by prtriage_core derives from TriageError so the CLI can
turn any failure into a single non-zero exit with a readable message.
Fetch and model errors are fatal to the run. ActionFailure is fatal only when
the comment post (or the approval review) fails; merge and label failures are
recovered inside prtriage_core.decision.
"""

from __future__ import annotations


class TriageError(Exception):
    """Base class for every error raised by the triage pipeline."""


class InvalidReference(TriageError, ValueError):
    """The (owner, repo, number) triple is malformed."""


class ConfigurationError(TriageError):
    """The merged configuration is incomplete or out of range."""


class ProviderUnavailable(TriageError):
    """The diff provider is unreachable, timed out, or answered with a server error."""


class EmptyDiff(TriageError):
    """The diff provider succeeded but returned no diff content."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Diff provider returned no content for {ref}.")


class ProviderError(TriageError):
    """The diff provider returned a structured error payload.

    ``error`` and ``message`` are kept exactly as the provider sent them.
    """

    def __init__(self, error: str, message: str | None = None) -> None:
        self.error = error
        self.message = message
        text = f"{error} - {message}" if message else error
        super().__init__(text)


class BackendUnreachable(TriageError):
    """The model backend could not be reached (network or transport failure)."""


class MalformedBackendResponse(TriageError):
    """The model backend answered without the expected content field."""


class BackendError(TriageError):
    """The model backend returned a structured error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message if status_code is None else f"{status_code}: {message}")


class ActionFailure(TriageError):
    """A write to the PR surface (comment, review, merge, label) failed."""

    def __init__(self, step: str, detail: str) -> None:
        self.step = step
        self.detail = detail
        super().__init__(f"{step} failed: {detail}")
