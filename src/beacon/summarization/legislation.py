"""Best-effort bill summaries: scrape the legislation page, then summarize it."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx
from bs4 import BeautifulSoup

LOGGER = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 16_000
FETCH_TIMEOUT_SECONDS = 20.0

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class Summarizer(Protocol):
    def summarize(self, legislation_text: str) -> str:
        ...


class LegislationSummaryService:
    """Turn a legislation URL into a short summary; every failure yields ``None``."""

    def __init__(self, summarizer: Summarizer, http_client: Optional[httpx.Client] = None) -> None:
        self._summarizer = summarizer
        self._client = http_client or httpx.Client(timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=True)

    def summarize_legislation(self, legislation_url: Optional[str]) -> Optional[str]:
        if not legislation_url or not legislation_url.strip():
            return None
        try:
            text = self._fetch_document_text(legislation_url.strip())
            if not text:
                return None
            summary = (self._summarizer.summarize(text) or "").strip()
            return summary or None
        except Exception:
            LOGGER.exception("Failed to generate legislation summary for %s", legislation_url)
            return None

    def _fetch_document_text(self, legislation_url: str) -> str:
        response = self._client.get(legislation_url, headers={"Accept": _ACCEPT})
        if response.status_code >= 400:
            LOGGER.warning(
                "Unable to fetch legislation content (status %s) from %s",
                response.status_code,
                legislation_url,
            )
            return ""
        soup = BeautifulSoup(response.text, "html.parser")
        text = soup.get_text(" ", strip=True)
        return text[:MAX_CONTENT_LENGTH].strip()

    def close(self) -> None:
        self._client.close()


__all__ = ["FETCH_TIMEOUT_SECONDS", "LegislationSummaryService", "MAX_CONTENT_LENGTH", "Summarizer"]
