"""Conversation processing pipeline.

Modules follow the order in which an upload is processed:

1. `ingestion` – read the multipart upload and validate type/size.
2. `orchestrator` – create the record, store the blob, transcribe, summarize,
   and apply the recovery operations (regenerate, re-upload, delete).
3. `errors` – failure conditions the HTTP layer maps to status codes.
"""

from .errors import (
    ConversationNotFound,
    InvalidAudioFile,
    NoAudioAvailable,
    NoTranscriptAvailable,
    NotEligibleForReupload,
    PipelineError,
    ProcessingFailed,
    StageFailed,
    StorageWriteFailed,
    SummarizationFailed,
    TranscriptionFailed,
    ValidationFailed,
)
from .ingestion import read_upload, resolve_content_type, validate_upload
from .orchestrator import PipelineOrchestrator, build_storage_key
from .types import AudioUpload

__all__ = [
    "AudioUpload",
    "ConversationNotFound",
    "InvalidAudioFile",
    "NoAudioAvailable",
    "NoTranscriptAvailable",
    "NotEligibleForReupload",
    "PipelineError",
    "PipelineOrchestrator",
    "ProcessingFailed",
    "StageFailed",
    "StorageWriteFailed",
    "SummarizationFailed",
    "TranscriptionFailed",
    "ValidationFailed",
    "build_storage_key",
    "read_upload",
    "resolve_content_type",
    "validate_upload",
]
