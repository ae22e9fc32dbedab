"""Diff source backed by a running MCP GitHub server.

The server is expected to be started by the host (CI step, sidecar, ``npx``);
prtriage only talks to it over HTTP:

    GET  {base_url}/capabilities   availability probe
    POST {base_url}/execute        {"name": "get_pull_request_diff",
                                    "args": {"owner", "repo", "pull_number"}}

A successful execute returns ``{"content": "<diff>"}``; a failed one returns
``{"error": "...", "message": "..."}``.
"""

from __future__ import annotations

import logging

import requests

from prtriage_core.diffs.base import DEFAULT_TIMEOUT, BaseDiffSource, error_from_response
from prtriage_core.errors import ProviderError, ProviderUnavailable
from prtriage_core.models import PullRequestRef

logger = logging.getLogger(__name__)

DIFF_TOOL_NAME = "get_pull_request_diff"


class McpDiffSource(BaseDiffSource):
    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        super().__init__(timeout=timeout, session=session)
        self._base_url = base_url.rstrip("/")

    def _probe(self) -> None:
        response = self._request("GET", f"{self._base_url}/capabilities")
        if not response.ok:
            raise ProviderUnavailable(
                f"MCP server at {self._base_url} not available or returned error: "
                f"{response.status_code} {response.reason}"
            )

    def _fetch_diff(self, ref: PullRequestRef) -> str | None:
        payload = {
            "name": DIFF_TOOL_NAME,
            "args": {"owner": ref.owner, "repo": ref.repo, "pull_number": ref.number},
        }
        response = self._request("POST", f"{self._base_url}/execute", json=payload)
        if not response.ok:
            raise error_from_response(response)

        try:
            result = response.json()
        except ValueError:
            raise ProviderError("Invalid response", f"MCP server returned non-JSON body: {response.text[:200]}")
        if not isinstance(result, dict):
            raise ProviderError("Invalid response", f"Expected a JSON object, got {type(result).__name__}")

        if result.get("error"):
            raise ProviderError(str(result["error"]), result.get("message"))

        content = result.get("content")
        if content is None:
            logger.warning("MCP server returned result without content field: %s", result)
        elif not isinstance(content, str):
            raise ProviderError("Invalid response", f"Expected diff text, got {type(content).__name__}")
        return content
