"""Upload ingestion and validation (first stage of the pipeline)."""

from __future__ import annotations

import mimetypes
import os
from typing import Final

from fastapi import UploadFile

from .errors import InvalidAudioFile
from .types import AudioUpload

ALLOWED_CONTENT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "audio/mpeg",
        "audio/mp3",
        "audio/mp4",
        "audio/x-m4a",
        "audio/m4a",
        "video/mp4",
    }
)
ALLOWED_EXTENSIONS: Final[frozenset[str]] = frozenset({".mp3", ".mp4", ".m4a"})

_FALLBACK_CONTENT_TYPE = "application/octet-stream"


def resolve_content_type(filename: str | None, declared: str | None) -> str:
    """Prefer the client's content-type, falling back to a guess from the filename."""

    content_type = (declared or "").split(";", 1)[0].strip().lower()
    if not content_type and filename:
        guessed_type, _ = mimetypes.guess_type(filename)
        content_type = guessed_type or ""
    return content_type or _FALLBACK_CONTENT_TYPE


def is_allowed_audio(filename: str, content_type: str) -> bool:
    """Accept a file when either its MIME type or its extension is allow-listed."""

    extension = os.path.splitext(filename or "")[1].lower()
    return content_type in ALLOWED_CONTENT_TYPES or extension in ALLOWED_EXTENSIONS


def validate_upload(upload: AudioUpload, *, max_size_bytes: int) -> None:
    """Reject unsupported, empty or oversized uploads."""

    if not is_allowed_audio(upload.filename, upload.content_type):
        raise InvalidAudioFile("Only MP3, MP4, and M4A files are supported")
    if upload.size_bytes == 0:
        raise InvalidAudioFile("Uploaded audio file is empty")
    if upload.size_bytes > max_size_bytes:
        limit_mib = max_size_bytes // (1024 * 1024)
        raise InvalidAudioFile(f"File size must be {limit_mib}MB or less")


async def read_upload(audio_file: UploadFile, *, max_size_bytes: int) -> AudioUpload:
    """Read a multipart upload into memory, stopping one byte past the size cap."""

    filename = os.path.basename(audio_file.filename or "")
    content_type = resolve_content_type(filename, audio_file.content_type)
    try:
        data = await audio_file.read(max_size_bytes + 1)
    finally:
        await audio_file.close()

    return AudioUpload(filename=filename, content_type=content_type, data=data)


__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "ALLOWED_EXTENSIONS",
    "is_allowed_audio",
    "read_upload",
    "resolve_content_type",
    "validate_upload",
]
