from __future__ import annotations

from prtriage_core.config import TriageConfig
from prtriage_core.diffs.base import BaseDiffSource
from prtriage_core.diffs.github import GithubDiffSource
from prtriage_core.diffs.mcp import McpDiffSource


def get_diff_source(config: TriageConfig) -> BaseDiffSource:
    if config.diff_source == "mcp":
        return McpDiffSource(base_url=config.mcp_url, timeout=float(config.diff_timeout))
    if config.diff_source == "github":
        return GithubDiffSource(token=config.github_token, api_url=config.github_api_url, timeout=float(config.diff_timeout))
    raise ValueError(f"Unknown diff source: {config.diff_source!r}. Choose 'github' or 'mcp'.")
