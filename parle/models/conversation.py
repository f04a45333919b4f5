"""SQLAlchemy model for uploaded conversations."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.dialects.postgresql import UUID

from parle.domain.conversation import ConversationStatus
from parle.models.base import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConversationEntity(Base):
    __tablename__ = "conversations"
    __table_args__ = (
        Index("ix_conversations_owner_created", "owner_id", "created_at"),
    )

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    owner_id = Column(String(128), nullable=False, index=True)
    original_filename = Column(String(512), nullable=False)
    mime_type = Column(String(128), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    storage_key = Column(String(1024), nullable=False, default="")
    status = Column(
        SqlEnum(
            ConversationStatus,
            name="conversation_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=ConversationStatus.INITIAL,
        index=True,
    )
    transcript_text = Column(Text, nullable=True)
    summary_text = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


__all__ = ["ConversationEntity", "utc_now"]
