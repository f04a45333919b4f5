"""Service layer helpers for external integrations."""

from .storage import (
    AccessDenied,
    LocalObjectStorage,
    ObjectNotFound,
    ObjectStorage,
    S3ObjectStorage,
    StorageError,
    StoredObject,
    UploadFailed,
)
from .summarize import BedrockSummarizer, MockSummarizer, SummarizationError, Summarizer
from .transcribe import (
    AmazonTranscribeTranscriber,
    MockTranscriber,
    Transcriber,
    TranscriptionError,
    TranscriptionResult,
)

__all__ = [
    "AccessDenied",
    "LocalObjectStorage",
    "ObjectNotFound",
    "ObjectStorage",
    "S3ObjectStorage",
    "StorageError",
    "StoredObject",
    "UploadFailed",
    "BedrockSummarizer",
    "MockSummarizer",
    "SummarizationError",
    "Summarizer",
    "AmazonTranscribeTranscriber",
    "MockTranscriber",
    "Transcriber",
    "TranscriptionError",
    "TranscriptionResult",
]
