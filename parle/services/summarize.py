"""Transcript summarization backends: Bedrock and an offline stub."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

from parle.services.llm_client import BedrockLlmClient, LlmInvocationError

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes audio transcripts. "
    "Provide a concise summary in 1-3 sentences."
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


class SummarizationError(RuntimeError):
    """Raised when a summary cannot be produced for a transcript."""


class Summarizer(ABC):
    """Condenses transcript text into a short summary."""

    @abstractmethod
    async def summarize(self, text: str) -> str:
        ...


class MockSummarizer(Summarizer):
    """Deterministic stand-in: the first three sentences plus a marker."""

    async def summarize(self, text: str) -> str:
        sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        first_sentences = ". ".join(sentences[:3])
        return (
            f"{first_sentences}... This is a mock summary because no "
            "summarization backend is configured."
        )


class BedrockSummarizer(Summarizer):
    """Summarize transcripts with a Bedrock-hosted model."""

    def __init__(self, llm_client: BedrockLlmClient) -> None:
        self._llm = llm_client

    async def summarize(self, text: str) -> str:
        if not text.strip():
            raise SummarizationError("Cannot summarize an empty transcript.")

        try:
            summary = await self._llm.invoke(
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                user_prompt=f"Please summarize this transcript: {text}",
            )
        except LlmInvocationError as exc:
            raise SummarizationError(f"Failed to summarize transcript: {exc}") from exc

        if not summary:
            raise SummarizationError("Summary could not be generated.")
        return summary


__all__ = [
    "BedrockSummarizer",
    "MockSummarizer",
    "SUMMARY_SYSTEM_PROMPT",
    "SummarizationError",
    "Summarizer",
]
