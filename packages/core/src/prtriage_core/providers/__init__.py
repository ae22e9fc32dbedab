from __future__ import annotations

from prtriage_core.config import TriageConfig
from prtriage_core.providers.base import BaseReviewer


def get_reviewer(config: TriageConfig) -> BaseReviewer:
    if config.provider == "anthropic":
        from prtriage_core.providers.anthropic import AnthropicReviewer

        return AnthropicReviewer(
            api_key=config.anthropic_api_key,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    if config.provider == "openai":
        from prtriage_core.providers.openai import OpenAIReviewer

        return OpenAIReviewer(
            api_key=config.openrouter_api_key,
            base_url=config.llm_base_url,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            default_headers={"HTTP-Referer": config.site_url, "X-Title": config.site_name},
        )
    raise ValueError(f"Unknown model provider: {config.provider!r}. Choose 'openai' or 'anthropic'.")
