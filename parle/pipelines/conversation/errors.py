"""Failure conditions raised by the conversation pipeline.

Validation errors are raised before any mutation. Processing and storage
errors carry the record as it was left so callers can report its state.
"""

from __future__ import annotations

from uuid import UUID

from parle.domain.conversation import Conversation


class PipelineError(RuntimeError):
    """Base class for every error surfaced by the orchestrator."""


class ValidationFailed(PipelineError):
    """The request was rejected before touching any record."""


class InvalidAudioFile(ValidationFailed):
    """The upload has an unsupported type, is empty, or is too large."""


class NotEligibleForReupload(ValidationFailed):
    """Re-upload is only allowed while the original blob write never succeeded."""

    def __init__(self, conversation: Conversation) -> None:
        super().__init__("Conversation is not eligible for re-upload")
        self.conversation = conversation


class NoAudioAvailable(ValidationFailed):
    """The record has no stored blob to work from."""


class NoTranscriptAvailable(ValidationFailed):
    """The record has no transcript to summarize."""


class ConversationNotFound(PipelineError):
    """No record with this id exists for the calling owner."""

    def __init__(self, conversation_id: UUID) -> None:
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class StageFailed(PipelineError):
    """A collaborator call failed; ``conversation`` is the persisted state afterwards."""

    def __init__(self, conversation: Conversation, message: str) -> None:
        super().__init__(message)
        self.conversation = conversation


class StorageWriteFailed(StageFailed):
    """The blob could not be stored; the record stays eligible for re-upload."""


class ProcessingFailed(StageFailed):
    """Transcription or summarization failed."""


class TranscriptionFailed(ProcessingFailed):
    pass


class SummarizationFailed(ProcessingFailed):
    pass


__all__ = [
    "ConversationNotFound",
    "InvalidAudioFile",
    "NoAudioAvailable",
    "NoTranscriptAvailable",
    "NotEligibleForReupload",
    "PipelineError",
    "ProcessingFailed",
    "StageFailed",
    "StorageWriteFailed",
    "SummarizationFailed",
    "TranscriptionFailed",
    "ValidationFailed",
]
