"""Legislation summaries generated with the Gemini API via the official SDK."""
from __future__ import annotations

from importlib import import_module
from typing import Any, Optional
import logging
import math

LOGGER = logging.getLogger(__name__)

_PROMPT_TEMPLATE = (
    "Summarize the following U.S. congressional legislation into a single "
    "well-structured paragraph (maximum 120 words). Focus on the legislation's "
    "intent, primary actions, and notable impacts. Avoid speculation and keep "
    "the tone neutral.\n\nLegislation text:\n{content}"
)

_UNBLOCKED_CATEGORIES = (
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_CIVIC_INTEGRITY",
)

_TEMPERATURE = 0.2
_MAX_OUTPUT_TOKENS = 400


def _response_text(response: Any) -> str:
    """First non-blank text of a ``generate_content`` response."""

    text = (response.text or "").strip()
    if text:
        return text
    for candidate in response.candidates or ():
        content = candidate.content
        for part in (content.parts if content else None) or ():
            part_text = (getattr(part, "text", None) or "").strip()
            if part_text:
                return part_text
    raise RuntimeError("Gemini response did not contain text")


class GeminiSummarizer:
    """Short, neutral bill summaries from a Gemini model."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com",
        model: str = "gemini-2.5-flash",
        timeout: float = 120.0,
        max_retries: int = 3,
        enable_safety_settings: bool = False,
    ) -> None:
        if not api_key:
            raise ValueError("A Gemini API key must be provided")
        self._model = model
        self._attempts = max(1, max_retries)
        self._genai = import_module("google.genai")
        self._types = import_module("google.genai.types")

        http_options: dict[str, object] = {}
        if base_url:
            http_options["base_url"] = base_url.rstrip("/")
        if timeout > 0:
            # milliseconds
            http_options["timeout"] = math.ceil(timeout) * 1000
        self._client = self._genai.Client(api_key=api_key, http_options=self._types.HttpOptions(**http_options))
        self._config = self._generation_config(enable_safety_settings)

    def _generation_config(self, enable_safety_settings: bool):
        config = self._types.GenerateContentConfig(
            temperature=_TEMPERATURE,
            max_output_tokens=_MAX_OUTPUT_TOKENS,
        )
        if not enable_safety_settings:
            config.safety_settings = [
                self._types.SafetySetting(
                    category=getattr(self._types.HarmCategory, name),
                    threshold=self._types.HarmBlockThreshold.BLOCK_NONE,
                )
                for name in _UNBLOCKED_CATEGORIES
            ]
        return config

    def summarize(self, legislation_text: str) -> str:
        content = legislation_text.strip()
        if not content:
            raise ValueError("legislation_text must not be blank")
        prompt = _PROMPT_TEMPLATE.format(content=content)
        last_exc: Optional[Exception] = None
        for attempt in range(1, self._attempts + 1):
            try:
                response = self._client.models.generate_content(
                    model=self._model,
                    contents=prompt,
                    config=self._config,
                )
            except self._genai.errors.APIError as exc:
                last_exc = exc
                LOGGER.warning("Gemini request failed (attempt %s/%s): %s", attempt, self._attempts, exc)
                continue
            return _response_text(response)
        raise RuntimeError(f"Gemini summary failed after {self._attempts} attempts") from last_exc


__all__ = ["GeminiSummarizer"]
