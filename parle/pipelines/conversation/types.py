"""Typed containers shared across the conversation pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AudioUpload:
    """An uploaded audio file fully read into memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lower-cased filename extension including the dot, or ``""``."""

        return os.path.splitext(self.filename or "")[1].lower()


__all__ = ["AudioUpload"]
