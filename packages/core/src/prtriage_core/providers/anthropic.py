from __future__ import annotations

from prtriage_core.errors import BackendError, BackendUnreachable
from prtriage_core.providers.base import BaseReviewer


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'prtriage[anthropic]'"
            )
        super().__init__(model=model, max_tokens=max_tokens, temperature=temperature)
        self.client = Anthropic(api_key=api_key, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str | None:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic import APIConnectionError, APIStatusError
        from anthropic.types import TextBlock

        try:
            response = self.client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except APIConnectionError as e:
            raise BackendUnreachable(f"Could not reach model backend: {e}") from e
        except APIStatusError as e:
            raise BackendError(getattr(e, "message", None) or str(e), status_code=e.status_code) from e

        text_blocks = [block.text for block in (response.content or []) if isinstance(block, TextBlock)]
        if not text_blocks:
            return None
        return "".join(text_blocks)
