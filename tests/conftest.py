"""Shared fixtures: in-memory stand-ins for the database and external services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional
from uuid import UUID, uuid4

import pytest

from parle.application.interfaces import ConversationRepositoryInterface
from parle.domain.conversation import Conversation
from parle.pipelines.conversation import AudioUpload, PipelineOrchestrator
from parle.services.storage import (
    ObjectNotFound,
    ObjectStorage,
    StorageError,
    StoredObject,
    UploadFailed,
)
from parle.services.summarize import SummarizationError, Summarizer
from parle.services.transcribe import Transcriber, TranscriptionError, TranscriptionResult

TEST_MAX_UPLOAD_BYTES = 1024


class InMemoryConversationRepository(ConversationRepositoryInterface):
    def __init__(self) -> None:
        self.rows: dict[UUID, Conversation] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        # Strictly increasing so newest-first ordering is deterministic.
        self._clock += timedelta(seconds=1)
        return self._clock

    async def create(
        self,
        *,
        owner_id: str,
        original_filename: str,
        mime_type: str,
        size_bytes: int,
    ) -> Conversation:
        now = self._tick()
        conversation = Conversation(
            id=uuid4(),
            owner_id=owner_id,
            original_filename=original_filename,
            mime_type=mime_type,
            size_bytes=size_bytes,
            created_at=now,
            updated_at=now,
        )
        self.rows[conversation.id] = conversation
        return conversation

    async def get(self, conversation_id: UUID, owner_id: str) -> Optional[Conversation]:
        conversation = self.rows.get(conversation_id)
        if conversation is None or conversation.owner_id != owner_id:
            return None
        return conversation

    async def list_for_owner(self, owner_id: str) -> List[Conversation]:
        owned = [c for c in self.rows.values() if c.owner_id == owner_id]
        return sorted(owned, key=lambda c: c.created_at, reverse=True)

    async def update(
        self,
        conversation_id: UUID,
        owner_id: str,
        **changes: Any,
    ) -> Optional[Conversation]:
        conversation = await self.get(conversation_id, owner_id)
        if conversation is None:
            return None
        updated = conversation.model_copy(update={**changes, "updated_at": self._tick()})
        self.rows[conversation_id] = updated
        return updated

    async def delete(self, conversation_id: UUID, owner_id: str) -> bool:
        if await self.get(conversation_id, owner_id) is None:
            return False
        del self.rows[conversation_id]
        return True


class FakeStorage(ObjectStorage):
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_put = False
        self.fail_get = False
        self.fail_delete = False

    async def put(self, data: bytes, key: str, *, content_type: str) -> StoredObject:
        if self.fail_put:
            raise UploadFailed(f"Failed to upload {key}: bucket unavailable")
        self.objects[key] = data
        return StoredObject(key=key, size=len(data))

    async def get(self, key: str) -> bytes:
        if self.fail_get:
            raise StorageError(f"Failed to read {key}: bucket unavailable")
        try:
            return self.objects[key]
        except KeyError:
            raise ObjectNotFound(f"File not found: {key}") from None

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        if self.fail_delete:
            raise StorageError(f"Failed to delete {key}: bucket unavailable")
        self.objects.pop(key, None)

    async def signed_read_url(self, key: str, ttl_seconds: int) -> str:
        if key not in self.objects:
            raise ObjectNotFound(f"File not found: {key}")
        return f"https://storage.test/{key}?expires={ttl_seconds}"


class FakeTranscriber(Transcriber):
    def __init__(self, transcript: str = "Hello there. This is a test call. Goodbye.") -> None:
        self.transcript = transcript
        self.fail = False
        self.calls: list[bytes] = []

    async def transcribe(
        self,
        audio_bytes: bytes,
        *,
        filename: str,
        content_type: str,
    ) -> TranscriptionResult:
        self.calls.append(audio_bytes)
        if self.fail:
            raise TranscriptionError("Streaming transcription failed: service unavailable")
        return TranscriptionResult(transcript=self.transcript, language_code="en-US", is_mock=True)


class FakeSummarizer(Summarizer):
    def __init__(self, summary: str = "A short test call.") -> None:
        self.summary = summary
        self.fail = False
        self.calls: list[str] = []

    async def summarize(self, text: str) -> str:
        self.calls.append(text)
        if self.fail:
            raise SummarizationError("Failed to summarize transcript: throttled")
        return self.summary


def make_upload(
    filename: str = "call.mp3",
    content_type: str = "audio/mpeg",
    data: bytes = b"ID3-fake-audio",
) -> AudioUpload:
    return AudioUpload(filename=filename, content_type=content_type, data=data)


@pytest.fixture
def repository() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def orchestrator(repository, storage, transcriber, summarizer) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        repository,
        storage,
        transcriber,
        summarizer,
        max_upload_bytes=TEST_MAX_UPLOAD_BYTES,
        signed_url_ttl_seconds=600,
    )
