"""Base reviewer implementing the Template Method pattern.

All providers share the same request algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_api()   ← only this differs per provider
             → _check_content()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response, mapping SDK
    errors onto BackendUnreachable / BackendError

No retry: one request per review, and any failure ends the run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from prtriage_core.errors import MalformedBackendResponse
from prtriage_core.models import ReviewRequest

logger = logging.getLogger(__name__)

# Shared defaults; subclasses may override as class attributes if needed.
_MAX_TOKENS = 6000
_TEMPERATURE = 0.2


class BaseReviewer(ABC):
    MODEL: str = ""
    MAX_TOKENS: int = _MAX_TOKENS
    TEMPERATURE: float = _TEMPERATURE

    def __init__(self, model: str | None = None, max_tokens: int | None = None, temperature: float | None = None):
        self.model = model or self.MODEL
        self.max_tokens = max_tokens if max_tokens is not None else self.MAX_TOKENS
        self.temperature = temperature if temperature is not None else self.TEMPERATURE

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(self, request: ReviewRequest) -> str:
        """Send one review request and return the verdict text unmodified."""
        system = self._build_system_prompt(request.instructions)
        user = self._build_user_prompt(request.diff)
        logger.info(
            "%s: sending diff (%d characters) to %s",
            self.__class__.__name__,
            len(request.diff),
            self.model,
        )
        raw = self._call_api(system, user)
        return self._check_content(raw)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str | None:
        """Make a single API call and return the raw text response.

        Raise BackendUnreachable for transport failures and BackendError for
        API errors. Return None (or raise MalformedBackendResponse) when the
        response has no content.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self, instructions: str) -> str:
        return instructions

    def _build_user_prompt(self, diff: str) -> str:
        return f"Here is the PR diff to analyze:\n\n{diff}"

    def _check_content(self, raw) -> str:
        # An empty verdict is an integration defect, never a silent "".
        if not isinstance(raw, str) or not raw:
            logger.error("%s: response carried no content: %r", self.__class__.__name__, raw)
            raise MalformedBackendResponse(
                f"{self.__class__.__name__}: response from {self.model} has no content field"
            )
        return raw
