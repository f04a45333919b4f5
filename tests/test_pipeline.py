"""Orchestrator behaviour against in-memory collaborators."""

from __future__ import annotations

from uuid import uuid4

import pytest

from conftest import TEST_MAX_UPLOAD_BYTES, make_upload
from parle.domain.conversation import ConversationStatus, has_stored_blob, is_reupload_eligible
from parle.pipelines.conversation import (
    ConversationNotFound,
    InvalidAudioFile,
    NoAudioAvailable,
    NoTranscriptAvailable,
    NotEligibleForReupload,
    StorageWriteFailed,
    SummarizationFailed,
    TranscriptionFailed,
    build_storage_key,
)

pytestmark = pytest.mark.asyncio

OWNER = "user-123"
OTHER_OWNER = "user-456"


async def _seed(repository, *, status: ConversationStatus, storage_key: str = "", **changes):
    conversation = await repository.create(
        owner_id=OWNER,
        original_filename="call.mp3",
        mime_type="audio/mpeg",
        size_bytes=14,
    )
    return await repository.update(
        conversation.id,
        OWNER,
        status=status,
        storage_key=storage_key,
        **changes,
    )


async def test_submit_happy_path_ends_summarized(orchestrator, repository, storage, summarizer):
    conversation = await orchestrator.submit(OWNER, make_upload())

    assert conversation.status == ConversationStatus.SUMMARIZED
    assert conversation.storage_key == build_storage_key(OWNER, conversation.id, ".mp3")
    assert storage.objects[conversation.storage_key] == b"ID3-fake-audio"
    assert conversation.transcript_text == "Hello there. This is a test call. Goodbye."
    assert conversation.summary_text == "A short test call."
    assert conversation.error_message is None
    assert summarizer.calls == [conversation.transcript_text]
    assert repository.rows[conversation.id] == conversation


async def test_submit_storage_failure_leaves_record_eligible_for_reupload(
    orchestrator, repository, storage, transcriber
):
    storage.fail_put = True

    with pytest.raises(StorageWriteFailed) as excinfo:
        await orchestrator.submit(OWNER, make_upload())

    failed = excinfo.value.conversation
    stored = repository.rows[failed.id]
    assert stored.status == ConversationStatus.INITIAL
    assert stored.storage_key == ""
    assert is_reupload_eligible(stored)
    assert transcriber.calls == []


async def test_reupload_after_storage_failure_completes_pipeline(orchestrator, storage):
    storage.fail_put = True
    with pytest.raises(StorageWriteFailed) as excinfo:
        await orchestrator.submit(OWNER, make_upload())
    conversation_id = excinfo.value.conversation.id

    storage.fail_put = False
    replacement = make_upload(filename="retry.m4a", content_type="audio/x-m4a", data=b"m4a-bytes")
    conversation = await orchestrator.re_upload(conversation_id, OWNER, replacement)

    assert conversation.id == conversation_id
    assert conversation.status == ConversationStatus.SUMMARIZED
    assert conversation.storage_key == build_storage_key(OWNER, conversation_id, ".m4a")
    assert conversation.original_filename == "retry.m4a"
    assert conversation.mime_type == "audio/x-m4a"
    assert conversation.size_bytes == len(b"m4a-bytes")


async def test_submit_transcription_failure_marks_record_failed(
    orchestrator, repository, transcriber, summarizer
):
    transcriber.fail = True

    with pytest.raises(TranscriptionFailed) as excinfo:
        await orchestrator.submit(OWNER, make_upload())

    stored = repository.rows[excinfo.value.conversation.id]
    assert stored.status == ConversationStatus.FAILED
    assert "service unavailable" in stored.error_message
    assert stored.storage_key
    assert stored.summary_text is None
    assert summarizer.calls == []


async def test_regenerate_transcript_recovers_failed_record(orchestrator, transcriber):
    transcriber.fail = True
    with pytest.raises(TranscriptionFailed) as excinfo:
        await orchestrator.submit(OWNER, make_upload())

    transcriber.fail = False
    conversation = await orchestrator.regenerate_transcript(excinfo.value.conversation.id, OWNER)

    assert conversation.status == ConversationStatus.TRANSCRIBED
    assert conversation.transcript_text == transcriber.transcript
    assert conversation.error_message is None
    assert conversation.summary_text is None
    assert transcriber.calls[-1] == b"ID3-fake-audio"


async def test_submit_summarization_failure_rests_at_transcribed(orchestrator, summarizer):
    summarizer.fail = True

    conversation = await orchestrator.submit(OWNER, make_upload())

    assert conversation.status == ConversationStatus.TRANSCRIBED
    assert conversation.summary_text is None
    assert conversation.error_message is None

    summarizer.fail = False
    conversation = await orchestrator.regenerate_summary(conversation.id, OWNER)
    assert conversation.status == ConversationStatus.SUMMARIZED
    assert conversation.summary_text == "A short test call."


@pytest.mark.parametrize(
    "status",
    [ConversationStatus.TRANSCRIBED, ConversationStatus.SUMMARIZED, ConversationStatus.FAILED],
)
async def test_regenerate_summary_failure_leaves_status_unchanged(
    orchestrator, repository, summarizer, status
):
    seeded = await _seed(
        repository,
        status=status,
        storage_key="conversations/user-123/x.mp3",
        transcript_text="Some transcript.",
        summary_text="Old summary" if status == ConversationStatus.SUMMARIZED else None,
    )
    summarizer.fail = True

    with pytest.raises(SummarizationFailed):
        await orchestrator.regenerate_summary(seeded.id, OWNER)

    stored = repository.rows[seeded.id]
    assert stored.status == status
    assert stored.summary_text == seeded.summary_text


async def test_regenerate_summary_is_repeatable(orchestrator, repository, summarizer):
    conversation = await orchestrator.submit(OWNER, make_upload())

    summarizer.summary = "first"
    first = await orchestrator.regenerate_summary(conversation.id, OWNER)
    summarizer.summary = "second"
    second = await orchestrator.regenerate_summary(conversation.id, OWNER)

    assert first.status == second.status == ConversationStatus.SUMMARIZED
    assert first.summary_text == "first"
    assert second.summary_text == "second"
    assert first.transcript_text == conversation.transcript_text
    assert second.transcript_text == conversation.transcript_text
    assert repository.rows[conversation.id].summary_text == "second"


async def test_regenerate_summary_requires_transcript(orchestrator, repository):
    seeded = await _seed(repository, status=ConversationStatus.FAILED, storage_key="k.mp3")

    with pytest.raises(NoTranscriptAvailable):
        await orchestrator.regenerate_summary(seeded.id, OWNER)


async def test_regenerate_transcript_clears_existing_summary(orchestrator, transcriber):
    conversation = await orchestrator.submit(OWNER, make_upload())
    assert conversation.summary_text is not None

    transcriber.transcript = "A different transcript."
    conversation = await orchestrator.regenerate_transcript(conversation.id, OWNER)

    assert conversation.status == ConversationStatus.TRANSCRIBED
    assert conversation.transcript_text == "A different transcript."
    assert conversation.summary_text is None


async def test_regenerate_transcript_without_blob_is_rejected(orchestrator, repository):
    seeded = await _seed(repository, status=ConversationStatus.INITIAL)

    with pytest.raises(NoAudioAvailable):
        await orchestrator.regenerate_transcript(seeded.id, OWNER)
    assert repository.rows[seeded.id].status == ConversationStatus.INITIAL


async def test_regenerate_transcript_storage_read_failure_marks_failed(
    orchestrator, repository, storage
):
    conversation = await orchestrator.submit(OWNER, make_upload())
    storage.fail_get = True

    with pytest.raises(TranscriptionFailed):
        await orchestrator.regenerate_transcript(conversation.id, OWNER)

    stored = repository.rows[conversation.id]
    assert stored.status == ConversationStatus.FAILED
    assert stored.summary_text is None
    assert stored.transcript_text == conversation.transcript_text
    assert "Failed to read stored audio" in stored.error_message


@pytest.mark.parametrize("storage_key", ["", "conversations/user-123/a.mp3"])
@pytest.mark.parametrize("status", list(ConversationStatus))
async def test_reupload_only_for_initial_without_blob(
    orchestrator, repository, storage, status, storage_key
):
    seeded = await _seed(repository, status=status, storage_key=storage_key)

    if status == ConversationStatus.INITIAL and not storage_key:
        conversation = await orchestrator.re_upload(seeded.id, OWNER, make_upload())

        assert conversation.status == ConversationStatus.SUMMARIZED
        assert conversation.storage_key == build_storage_key(OWNER, seeded.id, ".mp3")
        assert conversation.storage_key in storage.objects
        return

    with pytest.raises(NotEligibleForReupload):
        await orchestrator.re_upload(seeded.id, OWNER, make_upload())

    assert storage.objects == {}
    assert repository.rows[seeded.id] == seeded


async def test_invalid_upload_creates_no_record(orchestrator, repository, storage):
    with pytest.raises(InvalidAudioFile):
        await orchestrator.submit(OWNER, make_upload(filename="notes.txt", content_type="text/plain"))
    with pytest.raises(InvalidAudioFile):
        await orchestrator.submit(OWNER, make_upload(data=b""))
    with pytest.raises(InvalidAudioFile):
        await orchestrator.submit(OWNER, make_upload(data=b"x" * (TEST_MAX_UPLOAD_BYTES + 1)))

    assert repository.rows == {}
    assert storage.objects == {}


async def test_delete_removes_record_and_blob(orchestrator, repository, storage):
    conversation = await orchestrator.submit(OWNER, make_upload())

    await orchestrator.delete(conversation.id, OWNER)

    assert conversation.id not in repository.rows
    assert storage.deleted == [conversation.storage_key]
    assert storage.objects == {}


async def test_delete_survives_blob_deletion_failure(orchestrator, repository, storage):
    conversation = await orchestrator.submit(OWNER, make_upload())
    storage.fail_delete = True

    await orchestrator.delete(conversation.id, OWNER)

    assert conversation.id not in repository.rows
    assert storage.deleted == [conversation.storage_key]


@pytest.mark.parametrize("status", list(ConversationStatus))
@pytest.mark.parametrize("storage_key", ["", "conversations/user-123/a.mp3"])
async def test_delete_attempts_blob_removal_only_when_one_was_stored(
    orchestrator, repository, storage, status, storage_key
):
    seeded = await _seed(repository, status=status, storage_key=storage_key)

    await orchestrator.delete(seeded.id, OWNER)

    attempted = bool(storage.deleted)
    assert attempted == has_stored_blob(seeded)
    assert seeded.id not in repository.rows


async def test_foreign_records_are_not_found(orchestrator, repository):
    conversation = await orchestrator.submit(OWNER, make_upload())

    with pytest.raises(ConversationNotFound):
        await orchestrator.get(conversation.id, OTHER_OWNER)
    with pytest.raises(ConversationNotFound):
        await orchestrator.delete(conversation.id, OTHER_OWNER)
    with pytest.raises(ConversationNotFound):
        await orchestrator.regenerate_transcript(conversation.id, OTHER_OWNER)
    with pytest.raises(ConversationNotFound):
        await orchestrator.regenerate_summary(conversation.id, OTHER_OWNER)
    with pytest.raises(ConversationNotFound):
        await orchestrator.re_upload(conversation.id, OTHER_OWNER, make_upload())

    assert conversation.id in repository.rows


async def test_unknown_id_is_not_found(orchestrator):
    with pytest.raises(ConversationNotFound):
        await orchestrator.get(uuid4(), OWNER)


async def test_list_is_owner_scoped_and_newest_first(orchestrator):
    first = await orchestrator.submit(OWNER, make_upload(filename="one.mp3"))
    second = await orchestrator.submit(OWNER, make_upload(filename="two.mp3"))
    await orchestrator.submit(OTHER_OWNER, make_upload(filename="theirs.mp3"))

    listed = await orchestrator.list_for_owner(OWNER)

    assert [c.id for c in listed] == [second.id, first.id]


async def test_audio_url_for_stored_blob(orchestrator):
    conversation = await orchestrator.submit(OWNER, make_upload())

    url = await orchestrator.audio_url(conversation.id, OWNER)

    assert url == f"https://storage.test/{conversation.storage_key}?expires=600"


async def test_audio_url_without_blob_is_rejected(orchestrator, storage):
    storage.fail_put = True
    with pytest.raises(StorageWriteFailed) as excinfo:
        await orchestrator.submit(OWNER, make_upload())

    with pytest.raises(NoAudioAvailable):
        await orchestrator.audio_url(excinfo.value.conversation.id, OWNER)
