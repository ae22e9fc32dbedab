import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from prtriage_core.errors import ConfigurationError

DEFAULT_CONFIG: dict = {
    "provider": "openai",  # "openai" talks to any OpenAI-compatible endpoint, OpenRouter by default
    "model": None,  # None = the provider's built-in default model
    "max_tokens": 6000,
    "temperature": 0.2,
    "llm_base_url": "https://openrouter.ai/api/v1",
    "diff_source": "github",
    "mcp_url": "http://localhost:8080",
    "github_api_url": "https://api.github.com",
    "diff_timeout": 30,
    "instructions": None,
    "instructions_file": None,
    "label": "needs-review",
    "merge_method": "squash",
    "site_url": "https://github.com/prtriage/prtriage",
    "site_name": "prtriage",
}

PROVIDERS = ("openai", "anthropic")
DIFF_SOURCES = ("github", "mcp")
MERGE_METHODS = ("merge", "squash", "rebase")


@dataclass
class TriageConfig:
    """Validated settings for one triage run.

    Built by load_config() and handed to run_review(); nothing in prtriage_core
    reads the process environment on its own.
    """

    provider: str = DEFAULT_CONFIG["provider"]
    model: Optional[str] = None
    max_tokens: int = DEFAULT_CONFIG["max_tokens"]
    temperature: float = DEFAULT_CONFIG["temperature"]
    llm_base_url: Optional[str] = DEFAULT_CONFIG["llm_base_url"]
    diff_source: str = DEFAULT_CONFIG["diff_source"]
    mcp_url: str = DEFAULT_CONFIG["mcp_url"]
    github_api_url: str = DEFAULT_CONFIG["github_api_url"]
    diff_timeout: float = DEFAULT_CONFIG["diff_timeout"]
    instructions: Optional[str] = None
    instructions_file: Optional[str] = None
    label: str = DEFAULT_CONFIG["label"]
    merge_method: str = DEFAULT_CONFIG["merge_method"]
    site_url: str = DEFAULT_CONFIG["site_url"]
    site_name: str = DEFAULT_CONFIG["site_name"]
    github_token: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TriageConfig":
        """Build a config from a merged dict, ignoring keys this version does not know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @property
    def api_key(self) -> Optional[str]:
        return self.anthropic_api_key if self.provider == "anthropic" else self.openrouter_api_key

    def validate(self) -> "TriageConfig":
        if self.provider not in PROVIDERS:
            raise ConfigurationError(f"Unknown model provider: {self.provider!r}. Choose 'openai' or 'anthropic'.")
        if self.diff_source not in DIFF_SOURCES:
            raise ConfigurationError(f"Unknown diff source: {self.diff_source!r}. Choose 'github' or 'mcp'.")
        if self.merge_method not in MERGE_METHODS:
            raise ConfigurationError(f"Unknown merge method: {self.merge_method!r}.")
        if not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be a positive integer, got {self.max_tokens!r}.")
        if not 0 <= _as_number("temperature", self.temperature) <= 2:
            raise ConfigurationError(f"temperature must be between 0 and 2, got {self.temperature!r}.")
        if _as_number("diff_timeout", self.diff_timeout) <= 0:
            raise ConfigurationError(f"diff_timeout must be positive, got {self.diff_timeout!r}.")
        if not self.label:
            raise ConfigurationError("label must not be empty.")
        if not self.api_key:
            env_name = "ANTHROPIC_API_KEY" if self.provider == "anthropic" else "OPENROUTER_API_KEY"
            raise ConfigurationError(f"{env_name} environment variable is not set.")
        return self


def _as_number(key: str, value) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be a number, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}.") from None


def _from_environment(environ: Mapping[str, str]) -> dict:
    """Pick credentials, addresses and the model override out of an environment mapping."""
    resolved: dict = {
        "github_token": environ.get("GITHUB_TOKEN") or environ.get("GITHUB_PERSONAL_ACCESS_TOKEN"),
        "openrouter_api_key": environ.get("OPENROUTER_API_KEY") or environ.get("OPENAI_API_KEY"),
        "anthropic_api_key": environ.get("ANTHROPIC_API_KEY"),
    }
    if environ.get("LLM_MODEL"):
        resolved["model"] = environ["LLM_MODEL"]
    if environ.get("MCP_GITHUB_URL"):
        resolved["mcp_url"] = environ["MCP_GITHUB_URL"]
    elif environ.get("MCP_GITHUB_PORT"):
        resolved["mcp_url"] = f"http://localhost:{environ['MCP_GITHUB_PORT']}"
    for key, env_name in (("site_url", "SITE_URL"), ("site_name", "SITE_NAME")):
        if environ.get(env_name):
            resolved[key] = environ[env_name]
    return resolved


def load_config(
    config_path: str = ".prtriage.yml",
    cli_overrides: Optional[dict] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TriageConfig:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. Environment (credentials, model override, MCP address)
      3. .prtriage.yml in the current directory
      4. CLI argument overrides

    The result is not validated; call TriageConfig.validate() once the caller
    has filled in anything it resolves itself (e.g. the GitHub token).
    """
    config = dict(DEFAULT_CONFIG)
    config.update({k: v for k, v in _from_environment(os.environ if environ is None else environ).items() if v})

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a YAML mapping.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return TriageConfig.from_dict(config)


def load_instructions(config: TriageConfig) -> Optional[str]:
    """
    Return the extra rubric instructions for this run, or None.

    ``instructions`` wins over ``instructions_file``; the file path is resolved
    relative to cwd.
    """
    if config.instructions:
        return config.instructions
    if config.instructions_file:
        p = Path(config.instructions_file)
        if not p.exists():
            raise FileNotFoundError(f"Instructions file not found: {config.instructions_file}")
        return p.read_text().strip() or None
    return None
