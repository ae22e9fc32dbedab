"""Base diff source implementing the Template Method pattern.

All diff sources share the same acquisition algorithm:
    fetch() → _probe()       ← one availability check, fail fast
            → _fetch_diff()  ← one diff request
            → empty check

Subclasses implement only _probe and _fetch_diff. Neither may retry; a failed
probe means the diff request is never sent.

``timeout`` bounds the whole of fetch(), probe and diff request together,
including a provider that trickles its body out slowly.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod

import requests

from prtriage_core.errors import EmptyDiff, ProviderError, ProviderUnavailable
from prtriage_core.models import PullRequestRef

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
_CHUNK_SIZE = 8192


class BaseDiffSource(ABC):
    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.timeout = timeout
        # One session per source instance: concurrent runs never share a connection.
        self.session = session if session is not None else requests.Session()
        self._deadline: float | None = None

    def fetch(self, ref: PullRequestRef) -> str:
        """Return the unified diff for ``ref``.

        Raises ProviderUnavailable, ProviderError or EmptyDiff. Nothing is retried.
        """
        self._deadline = time.monotonic() + self.timeout
        outcome: dict = {}

        def _worker() -> None:
            try:
                outcome["diff"] = self._acquire(ref)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=_worker, name=f"diff-fetch-{ref.number}", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            # Drop the pooled connections so the abandoned read cannot be reused.
            self.session.close()
            raise ProviderUnavailable(f"Diff provider did not deliver the diff for {ref} within {self.timeout}s")
        if "error" in outcome:
            raise outcome["error"]

        diff = outcome["diff"]
        if not diff:
            raise EmptyDiff(str(ref))
        logger.info("Fetched diff for %s (%d characters)", ref, len(diff))
        return diff

    def _acquire(self, ref: PullRequestRef) -> str | None:
        self._probe()
        logger.debug("%s: provider available, fetching diff for %s", self.__class__.__name__, ref)
        return self._fetch_diff(ref)

    @abstractmethod
    def _probe(self) -> None:
        """Check the provider is reachable. Raise ProviderUnavailable if not."""

    @abstractmethod
    def _fetch_diff(self, ref: PullRequestRef) -> str | None:
        """Make the single diff request and return its content (None when absent)."""

    def _remaining(self, url: str) -> float:
        if self._deadline is None:
            return self.timeout
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise ProviderUnavailable(f"Diff provider at {url} did not answer within {self.timeout}s")
        return remaining

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send one HTTP request, mapping transport failures and 5xx to ProviderUnavailable.

        The body is read here, chunk by chunk, against the fetch deadline.
        """
        try:
            response = self.session.request(method, url, timeout=self._remaining(url), stream=True, **kwargs)
            self._read_body(response, url)
        except requests.Timeout as e:
            raise ProviderUnavailable(f"Diff provider at {url} did not answer within {self.timeout}s") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(f"Could not connect to diff provider at {url}: {e}") from e
        if response.status_code >= 500:
            raise ProviderUnavailable(
                f"Diff provider at {url} returned error: {response.status_code} {response.reason}"
                f" ({error_from_response(response)})"
            )
        return response

    def _read_body(self, response: requests.Response, url: str) -> None:
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                chunks.append(chunk)
                self._remaining(url)
        finally:
            response.close()
        # Same slot requests fills when it reads the body itself; .text and .json() work as usual.
        response._content = b"".join(chunks)


def error_from_response(response: requests.Response) -> ProviderError:
    """Build a ProviderError from a non-2xx response, keeping the provider's own wording."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and (payload.get("error") or payload.get("message")):
        return ProviderError(str(payload.get("error") or response.status_code), payload.get("message"))
    return ProviderError(f"{response.status_code} {response.reason}", response.text[:500] or None)
