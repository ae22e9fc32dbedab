from __future__ import annotations

from openai import APIConnectionError, APIStatusError, OpenAI

from prtriage_core.errors import BackendError, BackendUnreachable, MalformedBackendResponse
from prtriage_core.providers.base import BaseReviewer

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAIReviewer(BaseReviewer):
    """Any OpenAI-compatible chat completions endpoint, OpenRouter by default."""

    MODEL = "openrouter/optimus-alpha"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = OPENROUTER_BASE_URL,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        default_headers: dict | None = None,
    ):
        super().__init__(model=model, max_tokens=max_tokens, temperature=temperature)
        # max_retries=0: the SDK retries by default, a review is attempt-once.
        self.client = OpenAI(api_key=api_key, base_url=base_url, default_headers=default_headers, max_retries=0)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str | None:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except APIConnectionError as e:
            raise BackendUnreachable(f"Could not reach model backend: {e}") from e
        except APIStatusError as e:
            raise BackendError(_status_message(e), status_code=e.status_code) from e

        # OpenRouter reports some upstream failures as a 200 with an error body.
        error = getattr(response, "error", None)
        if error:
            raise BackendError(error.get("message", str(error)) if isinstance(error, dict) else str(error))
        if not response.choices or response.choices[0].message is None:
            raise MalformedBackendResponse("Invalid response structure from LLM API: no choices returned")
        return response.choices[0].message.content


def _status_message(error) -> str:
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return inner["message"]
    return getattr(error, "message", None) or str(error)
