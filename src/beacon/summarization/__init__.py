"""Summarization helpers."""
from __future__ import annotations

from .gemini import GeminiSummarizer
from .legislation import LegislationSummaryService, Summarizer

__all__ = ["GeminiSummarizer", "LegislationSummaryService", "Summarizer"]
