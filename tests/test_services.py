"""Backends behind the storage, transcription and summarization contracts."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from botocore.exceptions import ClientError

from parle.config.settings import Settings, StorageConfig
from parle.services.factory import build_collaborators
from parle.services.llm_client import LlmInvocationError
from parle.services.storage import (
    AccessDenied,
    LocalObjectStorage,
    ObjectNotFound,
    S3ObjectStorage,
    UploadFailed,
)
from parle.services.summarize import BedrockSummarizer, MockSummarizer, SummarizationError
from parle.services.transcribe import MockTranscriber, TranscriptionError

pytestmark = pytest.mark.asyncio


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


async def test_local_storage_round_trip(tmp_path):
    storage = LocalObjectStorage(tmp_path)

    stored = await storage.put(b"audio", "conversations/u1/abc.mp3", content_type="audio/mpeg")

    assert stored.size == 5
    assert await storage.get("conversations/u1/abc.mp3") == b"audio"
    url = await storage.signed_read_url("conversations/u1/abc.mp3", 60)
    assert url.startswith("file://")

    await storage.delete("conversations/u1/abc.mp3")
    with pytest.raises(ObjectNotFound):
        await storage.get("conversations/u1/abc.mp3")


async def test_local_storage_rejects_keys_outside_root(tmp_path):
    storage = LocalObjectStorage(tmp_path / "root")

    with pytest.raises(AccessDenied):
        await storage.put(b"audio", "../escape.mp3", content_type="audio/mpeg")


async def test_local_storage_rejects_empty_payload(tmp_path):
    with pytest.raises(UploadFailed):
        await LocalObjectStorage(tmp_path).put(b"", "a.mp3", content_type="audio/mpeg")


class _StubS3Client:
    def __init__(self, error: ClientError | None = None) -> None:
        self.error = error
        self.put_calls: list[dict] = []

    def put_object(self, **kwargs):
        if self.error:
            raise self.error
        self.put_calls.append(kwargs)
        return {}

    def get_object(self, **kwargs):
        if self.error:
            raise self.error
        return {"Body": SimpleNamespace(read=lambda: b"blob")}

    def delete_object(self, **kwargs):
        if self.error:
            raise self.error
        return {}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://bucket.test/{Params['Key']}?ttl={ExpiresIn}"


async def test_s3_storage_put_and_presign():
    client = _StubS3Client()
    storage = S3ObjectStorage(client, "parle-audio")

    stored = await storage.put(b"data", "k.mp3", content_type="audio/mpeg")

    assert stored.key == "k.mp3"
    assert client.put_calls[0]["Bucket"] == "parle-audio"
    assert client.put_calls[0]["ContentType"] == "audio/mpeg"
    assert await storage.get("k.mp3") == b"blob"
    assert await storage.signed_read_url("k.mp3", 3600) == "https://bucket.test/k.mp3?ttl=3600"


@pytest.mark.parametrize(
    ("code", "expected"),
    [("NoSuchKey", ObjectNotFound), ("AccessDenied", AccessDenied)],
)
async def test_s3_storage_maps_client_errors(code, expected):
    storage = S3ObjectStorage(_StubS3Client(_client_error(code, "GetObject")), "parle-audio")

    with pytest.raises(expected):
        await storage.get("k.mp3")


async def test_s3_storage_put_failure_is_upload_failed():
    storage = S3ObjectStorage(_StubS3Client(_client_error("InternalError", "PutObject")), "b")

    with pytest.raises(UploadFailed):
        await storage.put(b"data", "k.mp3", content_type="audio/mpeg")


async def test_mock_transcriber_names_the_file():
    result = await MockTranscriber().transcribe(b"abc", filename="call.mp3", content_type="audio/mpeg")

    assert result.is_mock
    assert result.transcript.startswith("[MOCK TRANSCRIPT for call.mp3]")


async def test_mock_transcriber_rejects_empty_audio():
    with pytest.raises(TranscriptionError):
        await MockTranscriber().transcribe(b"", filename="call.mp3", content_type="audio/mpeg")


async def test_mock_summarizer_keeps_first_three_sentences():
    summary = await MockSummarizer().summarize("One. Two! Three? Four.")

    assert summary.startswith("One. Two. Three...")
    assert "Four" not in summary


class _StubLlm:
    def __init__(self, reply=None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def invoke(self, *, system_prompt: str, user_prompt: str):
        self.prompts.append(user_prompt)
        if self.error:
            raise self.error
        return self.reply


async def test_bedrock_summarizer_returns_model_text():
    llm = _StubLlm(reply="A caller booked a table.")

    summary = await BedrockSummarizer(llm).summarize("I would like to book a table.")

    assert summary == "A caller booked a table."
    assert "book a table" in llm.prompts[0]


@pytest.mark.parametrize(
    "llm",
    [_StubLlm(reply=None), _StubLlm(error=LlmInvocationError("throttled"))],
)
async def test_bedrock_summarizer_failures(llm):
    with pytest.raises(SummarizationError):
        await BedrockSummarizer(llm).summarize("Some transcript.")


async def test_bedrock_summarizer_rejects_blank_transcript():
    with pytest.raises(SummarizationError):
        await BedrockSummarizer(_StubLlm(reply="x")).summarize("   ")


async def test_build_collaborators_selects_local_and_mock_backends(tmp_path):
    config = Settings(storage=StorageConfig(provider="local", local_root=str(tmp_path)))

    collaborators = build_collaborators(config)

    assert isinstance(collaborators.storage, LocalObjectStorage)
    assert isinstance(collaborators.transcriber, MockTranscriber)
    assert isinstance(collaborators.summarizer, MockSummarizer)
