"""Speech-to-text backends: Amazon Transcribe streaming and an offline stub."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass

from amazon_transcribe.client import TranscribeStreamingClient
from amazon_transcribe.handlers import TranscriptResultStreamHandler
from amazon_transcribe.model import TranscriptEvent
from fastapi.concurrency import run_in_threadpool

from parle.config.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptionResult:
    """Structured transcription outcome returned to the pipeline."""

    transcript: str
    language_code: str | None = None
    is_mock: bool = False


class TranscriptionError(RuntimeError):
    """Raised when the transcription backend fails to process audio."""


class Transcriber(ABC):
    """Converts a complete audio payload into text."""

    @abstractmethod
    async def transcribe(
        self,
        audio_bytes: bytes,
        *,
        filename: str,
        content_type: str,
    ) -> TranscriptionResult:
        ...


class MockTranscriber(Transcriber):
    """Deterministic stand-in used when no speech backend is configured."""

    async def transcribe(
        self,
        audio_bytes: bytes,
        *,
        filename: str,
        content_type: str,
    ) -> TranscriptionResult:
        if not audio_bytes:
            raise TranscriptionError("The uploaded audio file is empty.")
        name = os.path.basename(filename) or "audio"
        return TranscriptionResult(
            transcript=(
                f"[MOCK TRANSCRIPT for {name}] This is a mock transcription because "
                "no transcription backend is configured. The audio would have been "
                "transcribed here."
            ),
            is_mock=True,
        )


class AmazonTranscribeTranscriber(Transcriber):
    """High-level facade for streaming audio to Amazon Transcribe."""

    def __init__(
        self,
        region: str,
        language_code: str = "en-US",
        media_sample_rate_hz: int = 16000,
        media_encoding: str = "pcm",
    ) -> None:
        self._region = region
        self._language_code = language_code
        self._media_sample_rate_hz = media_sample_rate_hz
        self._media_encoding = media_encoding

        # The streaming SDK only reads credentials from the default AWS chain.
        if settings.storage.access_key:
            os.environ.setdefault("AWS_ACCESS_KEY_ID", settings.storage.access_key)
        if settings.storage.secret_key:
            os.environ.setdefault("AWS_SECRET_ACCESS_KEY", settings.storage.secret_key)

        self._client = TranscribeStreamingClient(region=region)

    async def transcribe(
        self,
        audio_bytes: bytes,
        *,
        filename: str,
        content_type: str,
    ) -> TranscriptionResult:
        """Stream audio to Transcribe and return the full transcript."""

        if not audio_bytes:
            raise TranscriptionError("The uploaded audio file is empty.")

        try:
            pcm_data = await self._convert_to_pcm(audio_bytes)
        except TranscriptionError:
            raise
        except Exception as exc:
            raise TranscriptionError(f"Audio conversion failed: {exc}") from exc

        if not pcm_data:
            raise TranscriptionError("Audio conversion produced no samples.")

        try:
            stream = await self._client.start_stream_transcription(
                language_code=self._language_code,
                media_sample_rate_hz=self._media_sample_rate_hz,
                media_encoding=self._media_encoding,
            )
        except Exception as exc:
            raise TranscriptionError(f"Could not open transcription stream: {exc}") from exc

        handler = _CollectingTranscriptHandler(stream.output_stream)

        async def write_chunks() -> None:
            # 16-bit mono PCM: two bytes per sample.
            chunk_size = 8192
            bytes_per_sec = self._media_sample_rate_hz * 2
            sleep_time = chunk_size / bytes_per_sec

            logger.info(
                "Starting stream file=%s bytes=%s chunk=%s sleep=%.4fs",
                filename,
                len(pcm_data),
                chunk_size,
                sleep_time,
            )

            total_sent = 0
            for i in range(0, len(pcm_data), chunk_size):
                chunk = pcm_data[i : i + chunk_size]
                await stream.input_stream.send_audio_event(audio_chunk=chunk)
                total_sent += len(chunk)
                # Transcribe streaming expects roughly real-time pacing.
                await asyncio.sleep(sleep_time)

                if i % (chunk_size * 50) == 0:
                    logger.debug("Streamed %s/%s bytes", total_sent, len(pcm_data))

            logger.info("Finished streaming audio bytes. Ending stream.")
            await stream.input_stream.end_stream()

        try:
            await asyncio.gather(write_chunks(), handler.handle_events())
        except Exception as exc:
            logger.error("Streaming loop failed: %s", exc)
            raise TranscriptionError(f"Streaming transcription failed: {exc}") from exc

        transcript = handler.transcript.strip()
        logger.info("Transcription complete. Length: %s", len(transcript))
        return TranscriptionResult(
            transcript=transcript,
            language_code=self._language_code,
        )

    async def _convert_to_pcm(self, audio_bytes: bytes) -> bytes:
        """Convert input audio to raw PCM s16le via ffmpeg using a thread."""
        return await run_in_threadpool(self._convert_to_pcm_sync, audio_bytes)

    def _convert_to_pcm_sync(self, audio_bytes: bytes) -> bytes:
        """Synchronous ffmpeg conversion using a temporary file to support seeking."""

        with tempfile.NamedTemporaryFile(delete=False, suffix=".tmp") as tmp_file:
            tmp_file.write(audio_bytes)
            tmp_path = tmp_file.name

        try:
            process = subprocess.run(
                [
                    "ffmpeg",
                    "-y",
                    "-i", tmp_path,
                    "-f", "s16le",
                    "-ac", "1",
                    "-ar", str(self._media_sample_rate_hz),
                    "pipe:1",
                ],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
            )
            if not process.stdout:
                logger.warning(
                    "ffmpeg produced empty output. stderr: %s",
                    process.stderr.decode("utf-8", errors="replace"),
                )
            return process.stdout
        except FileNotFoundError as exc:
            raise TranscriptionError("ffmpeg is not installed on this host.") from exc
        except subprocess.CalledProcessError as exc:
            error_msg = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else "No stderr"
            logger.error("ffmpeg failed. stderr: %s", error_msg)
            raise TranscriptionError(f"ffmpeg failed to convert audio to PCM: {error_msg}") from exc
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)


class _CollectingTranscriptHandler(TranscriptResultStreamHandler):
    def __init__(self, transcript_result_stream):
        super().__init__(transcript_result_stream)
        self.transcript = ""

    async def handle_transcript_event(self, transcript_event: TranscriptEvent):
        results = transcript_event.transcript.results
        for result in results:
            if not result.is_partial:
                for alt in result.alternatives[:1]:
                    self.transcript += alt.transcript + " "


__all__ = [
    "AmazonTranscribeTranscriber",
    "MockTranscriber",
    "TranscriptionError",
    "TranscriptionResult",
    "Transcriber",
]
