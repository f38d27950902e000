"""Base LLM provider implementing the Template Method pattern.

All providers share the same request flow:
    complete_json() → _call_with_retry() → _call_api()   ← only this differs per provider
                    → _parse()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

Prompt wording belongs to the generation stages; this layer only moves text
in and JSON out.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod

from prism_core.errors import ProviderError

logger = logging.getLogger(__name__)

# Subclasses may override these as class attributes.
_MAX_RETRIES = 3
_MAX_TOKENS = 4096


class BaseProvider(ABC):
    MODEL: str = ""
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, model: str | None = None):
        self.model = model or self.MODEL

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete_json(self, system_prompt: str, user_prompt: str):
        """Send one prompt pair and return the response parsed as JSON.

        Raises ProviderError when every attempt fails or the response is not
        valid JSON.
        """
        raw = self._call_with_retry(system_prompt, user_prompt)
        return self._parse(raw)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        It should raise on failure — _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise ProviderError(
                        f"{self.__class__.__name__} failed after {self.MAX_RETRIES} attempts: {e}"
                    ) from e
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise ProviderError(f"{self.__class__.__name__} made no attempts (MAX_RETRIES={self.MAX_RETRIES})")

    def _parse(self, raw: str | None):
        """Strip an outer ```json fence if present and load the JSON payload."""
        cleaned = re.sub(r"^```(?:json)?\s*", "", (raw or "").strip())
        cleaned = re.sub(r"\s*```$", "", cleaned.strip())
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.warning(
                "%s: failed to parse response as JSON: %s",
                self.__class__.__name__,
                (raw or "")[:200],
            )
            raise ProviderError(f"{self.__class__.__name__} returned invalid JSON: {e}") from e
