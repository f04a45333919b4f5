"""Conversation pipeline orchestrator.

Drives a single conversation through store -> transcribe -> summarize and
implements the recovery operations. Each operation runs its stages strictly
in sequence; there is no locking, so two concurrent calls on the same record
resolve as last-write-wins on the row.

Outcomes of ``submit``:

* storage fails: row stays ``initial`` with an empty key (re-upload eligible),
  :class:`StorageWriteFailed` is raised.
* transcription fails: row becomes ``failed`` with ``error_message`` set,
  :class:`TranscriptionFailed` is raised.
* summarization fails: row rests at ``transcribed``; nothing is raised.
* otherwise the row ends ``summarized``.
"""

from __future__ import annotations

import logging
from typing import Any, List
from uuid import UUID

from parle.application.interfaces import ConversationRepositoryInterface
from parle.domain.conversation import (
    Conversation,
    ConversationStatus,
    advance,
    has_stored_blob,
    is_reupload_eligible,
)
from parle.services.storage import ObjectNotFound, ObjectStorage, StorageError
from parle.services.summarize import SummarizationError, Summarizer
from parle.services.transcribe import Transcriber, TranscriptionError
from parle.telemetry import record_pipeline_stage

from .errors import (
    ConversationNotFound,
    NoAudioAvailable,
    NoTranscriptAvailable,
    NotEligibleForReupload,
    StorageWriteFailed,
    SummarizationFailed,
    TranscriptionFailed,
)
from .ingestion import validate_upload
from .types import AudioUpload

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024
DEFAULT_SIGNED_URL_TTL_SECONDS = 3600


def build_storage_key(owner_id: str, conversation_id: UUID, extension: str = "") -> str:
    """Derive the blob key from the owner and the record id alone."""

    return f"conversations/{owner_id}/{conversation_id}{extension}"


class PipelineOrchestrator:
    """Runs uploads through the pipeline and applies recovery operations."""

    def __init__(
        self,
        repository: ConversationRepositoryInterface,
        storage: ObjectStorage,
        transcriber: Transcriber,
        summarizer: Summarizer,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        signed_url_ttl_seconds: int = DEFAULT_SIGNED_URL_TTL_SECONDS,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._transcriber = transcriber
        self._summarizer = summarizer
        self._max_upload_bytes = max_upload_bytes
        self._signed_url_ttl_seconds = signed_url_ttl_seconds

    # ------------------------------------------------------------------ reads

    async def list_for_owner(self, owner_id: str) -> List[Conversation]:
        return await self._repository.list_for_owner(owner_id)

    async def get(self, conversation_id: UUID, owner_id: str) -> Conversation:
        conversation = await self._repository.get(conversation_id, owner_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)
        return conversation

    async def audio_url(self, conversation_id: UUID, owner_id: str) -> str:
        """Return a time-limited read URL for the stored audio."""

        conversation = await self.get(conversation_id, owner_id)
        if not conversation.storage_key.strip():
            raise NoAudioAvailable("No audio file is stored for this conversation")
        try:
            return await self._storage.signed_read_url(
                conversation.storage_key,
                self._signed_url_ttl_seconds,
            )
        except ObjectNotFound as exc:
            raise NoAudioAvailable("The stored audio file could not be found") from exc

    # --------------------------------------------------------------- pipeline

    async def submit(self, owner_id: str, upload: AudioUpload) -> Conversation:
        """Create a record for ``upload`` and run it through the whole pipeline."""

        validate_upload(upload, max_size_bytes=self._max_upload_bytes)

        # The row exists before the blob so a failed write is still recorded.
        conversation = await self._repository.create(
            owner_id=owner_id,
            original_filename=upload.filename,
            mime_type=upload.content_type,
            size_bytes=upload.size_bytes,
        )
        logger.info(
            "Upload started conversation=%s owner=%s file=%s size=%s",
            conversation.id,
            owner_id,
            upload.filename,
            upload.size_bytes,
        )

        conversation = await self._store_blob(conversation, upload)
        return await self._transcribe_then_summarize(conversation, upload.data)

    async def regenerate_transcript(self, conversation_id: UUID, owner_id: str) -> Conversation:
        """Re-run transcription on the stored blob; the old summary is discarded."""

        conversation = await self.get(conversation_id, owner_id)
        if not conversation.storage_key.strip():
            raise NoAudioAvailable("No audio file available for transcription")

        try:
            audio_bytes = await self._storage.get(conversation.storage_key)
        except StorageError as exc:
            record_pipeline_stage("transcribe", "error")
            logger.error(
                "Could not read stored audio conversation=%s key=%s: %s",
                conversation.id,
                conversation.storage_key,
                exc,
            )
            message = f"Failed to read stored audio: {exc}"
            failed = await self._mark_failed(conversation, message)
            raise TranscriptionFailed(failed, message) from exc

        return await self._transcribe(conversation, audio_bytes)

    async def regenerate_summary(self, conversation_id: UUID, owner_id: str) -> Conversation:
        """Re-run summarization; a failure never changes the record's status."""

        conversation = await self.get(conversation_id, owner_id)
        if not (conversation.transcript_text or "").strip():
            raise NoTranscriptAvailable("No transcript available for summarization")

        try:
            summary = await self._summarizer.summarize(conversation.transcript_text)
        except SummarizationError as exc:
            record_pipeline_stage("summarize", "error")
            logger.error("Summary regeneration failed conversation=%s: %s", conversation.id, exc)
            raise SummarizationFailed(conversation, str(exc)) from exc

        record_pipeline_stage("summarize", "success")
        return await self._update(
            conversation,
            summary_text=summary,
            status=advance(conversation.status, ConversationStatus.SUMMARIZED),
            error_message=None,
        )

    async def re_upload(
        self,
        conversation_id: UUID,
        owner_id: str,
        upload: AudioUpload,
    ) -> Conversation:
        """Retry a failed blob write on the same record, then continue the pipeline."""

        conversation = await self.get(conversation_id, owner_id)
        if not is_reupload_eligible(conversation):
            raise NotEligibleForReupload(conversation)
        validate_upload(upload, max_size_bytes=self._max_upload_bytes)

        logger.info(
            "Re-upload started conversation=%s file=%s size=%s",
            conversation.id,
            upload.filename,
            upload.size_bytes,
        )
        conversation = await self._store_blob(conversation, upload, refresh_metadata=True)
        return await self._transcribe_then_summarize(conversation, upload.data)

    async def delete(self, conversation_id: UUID, owner_id: str) -> None:
        """Delete the record, and its blob when one was ever stored."""

        conversation = await self.get(conversation_id, owner_id)

        if has_stored_blob(conversation):
            try:
                await self._storage.delete(conversation.storage_key)
            except StorageError as exc:
                # The row is the source of truth; an orphaned blob is acceptable.
                record_pipeline_stage("delete_blob", "error")
                logger.warning(
                    "Blob deletion failed conversation=%s key=%s: %s",
                    conversation.id,
                    conversation.storage_key,
                    exc,
                )
            else:
                record_pipeline_stage("delete_blob", "success")
        else:
            logger.info("Skipping blob deletion; none stored conversation=%s", conversation.id)

        deleted = await self._repository.delete(conversation.id, owner_id)
        if not deleted:
            raise ConversationNotFound(conversation.id)
        logger.info("Conversation deleted conversation=%s", conversation.id)

    # ---------------------------------------------------------------- stages

    async def _store_blob(
        self,
        conversation: Conversation,
        upload: AudioUpload,
        *,
        refresh_metadata: bool = False,
    ) -> Conversation:
        key = build_storage_key(conversation.owner_id, conversation.id, upload.extension)
        try:
            stored = await self._storage.put(upload.data, key, content_type=upload.content_type)
        except StorageError as exc:
            record_pipeline_stage("store", "error")
            logger.error("Blob storage failed conversation=%s key=%s: %s", conversation.id, key, exc)
            raise StorageWriteFailed(conversation, f"Failed to store audio: {exc}") from exc

        record_pipeline_stage("store", "success")
        changes: dict[str, Any] = {"storage_key": stored.key}
        if refresh_metadata:
            changes.update(
                original_filename=upload.filename,
                mime_type=upload.content_type,
                size_bytes=upload.size_bytes,
            )
        logger.info("Blob stored conversation=%s key=%s", conversation.id, stored.key)
        return await self._update(conversation, **changes)

    async def _transcribe_then_summarize(
        self,
        conversation: Conversation,
        audio_bytes: bytes,
    ) -> Conversation:
        conversation = await self._transcribe(conversation, audio_bytes)

        try:
            summary = await self._summarizer.summarize(conversation.transcript_text or "")
        except SummarizationError as exc:
            # A missing summary is not a pipeline failure.
            record_pipeline_stage("summarize", "error")
            logger.warning("Summarization failed conversation=%s: %s", conversation.id, exc)
            return conversation

        record_pipeline_stage("summarize", "success")
        logger.info("Summarization completed conversation=%s length=%s", conversation.id, len(summary))
        return await self._update(
            conversation,
            summary_text=summary,
            status=advance(conversation.status, ConversationStatus.SUMMARIZED),
        )

    async def _transcribe(self, conversation: Conversation, audio_bytes: bytes) -> Conversation:
        logger.info("Transcription started conversation=%s", conversation.id)
        try:
            result = await self._transcriber.transcribe(
                audio_bytes,
                filename=conversation.original_filename,
                content_type=conversation.mime_type,
            )
        except TranscriptionError as exc:
            record_pipeline_stage("transcribe", "error")
            logger.error("Transcription failed conversation=%s: %s", conversation.id, exc)
            failed = await self._mark_failed(conversation, str(exc))
            raise TranscriptionFailed(failed, str(exc)) from exc

        record_pipeline_stage("transcribe", "success")
        logger.info(
            "Transcription completed conversation=%s length=%s mock=%s",
            conversation.id,
            len(result.transcript),
            result.is_mock,
        )
        # A new transcript invalidates any summary derived from the old one.
        return await self._update(
            conversation,
            transcript_text=result.transcript,
            summary_text=None,
            status=advance(conversation.status, ConversationStatus.TRANSCRIBED),
            error_message=None,
        )

    async def _mark_failed(self, conversation: Conversation, message: str) -> Conversation:
        return await self._update(
            conversation,
            status=advance(conversation.status, ConversationStatus.FAILED),
            summary_text=None,
            error_message=message,
        )

    async def _update(self, conversation: Conversation, **changes: Any) -> Conversation:
        updated = await self._repository.update(conversation.id, conversation.owner_id, **changes)
        if updated is None:
            raise ConversationNotFound(conversation.id)
        return updated


__all__ = [
    "DEFAULT_MAX_UPLOAD_BYTES",
    "DEFAULT_SIGNED_URL_TTL_SECONDS",
    "PipelineOrchestrator",
    "build_storage_key",
]
