"""Pydantic schemas for conversation resources."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from parle.domain.conversation import Conversation, ConversationStatus


class ConversationResponse(BaseModel):
    """Full conversation record as returned by the transcripts endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: str = Field(serialization_alias="ownerId")
    original_filename: str = Field(serialization_alias="originalFilename")
    mime_type: str = Field(serialization_alias="mimeType")
    size_bytes: int = Field(serialization_alias="sizeBytes")
    storage_key: str = Field(serialization_alias="storageKey")
    status: ConversationStatus
    transcript_text: Optional[str] = Field(default=None, serialization_alias="transcriptText")
    summary_text: Optional[str] = Field(default=None, serialization_alias="summaryText")
    error_message: Optional[str] = Field(default=None, serialization_alias="errorMessage")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class UploadResponse(BaseModel):
    """Compact result of `POST /upload`."""

    id: UUID
    status: ConversationStatus
    transcript_preview: Optional[str] = Field(
        default=None,
        serialization_alias="transcriptPreview",
        description="First characters of the transcript",
    )
    summary: Optional[str] = None

    @classmethod
    def from_conversation(cls, conversation: Conversation, preview_length: int) -> "UploadResponse":
        preview = None
        if conversation.transcript_text is not None:
            preview = conversation.transcript_text[:preview_length]
        return cls(
            id=conversation.id,
            status=conversation.status,
            transcript_preview=preview,
            summary=conversation.summary_text or None,
        )


class AudioUrlResponse(BaseModel):
    """Signed, time-limited URL for the stored audio."""

    url: str
    expires_in: int = Field(
        serialization_alias="expiresIn",
        description="Seconds until the URL expires",
    )


__all__ = ["AudioUrlResponse", "ConversationResponse", "UploadResponse"]
