"""Conversation domain model and its status state machine.

Every status change made by the pipeline goes through :func:`advance`, which
only permits the edges declared in ``_TRANSITIONS``. The predicates at the
bottom of the module encode the storage-related rules that the recovery
operations depend on.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ConversationStatus(str, Enum):
    """Lifecycle states of an uploaded conversation."""

    INITIAL = "initial"
    TRANSCRIBED = "transcribed"
    SUMMARIZED = "summarized"
    FAILED = "failed"


class InvalidTransition(RuntimeError):
    """Raised when a status change is not a declared edge of the state machine."""

    def __init__(self, current: ConversationStatus, target: ConversationStatus) -> None:
        super().__init__(f"Cannot move conversation from {current.value} to {target.value}")
        self.current = current
        self.target = target


_TRANSITIONS: Mapping[ConversationStatus, frozenset[ConversationStatus]] = {
    # Only a successful (or failed) transcription leaves the initial state.
    ConversationStatus.INITIAL: frozenset(
        {ConversationStatus.TRANSCRIBED, ConversationStatus.FAILED}
    ),
    ConversationStatus.TRANSCRIBED: frozenset(
        {
            ConversationStatus.TRANSCRIBED,
            ConversationStatus.SUMMARIZED,
            ConversationStatus.FAILED,
        }
    ),
    ConversationStatus.SUMMARIZED: frozenset(
        {
            ConversationStatus.TRANSCRIBED,
            ConversationStatus.SUMMARIZED,
            ConversationStatus.FAILED,
        }
    ),
    ConversationStatus.FAILED: frozenset(
        {
            ConversationStatus.TRANSCRIBED,
            ConversationStatus.SUMMARIZED,
            ConversationStatus.FAILED,
        }
    ),
}


def can_transition(current: ConversationStatus, target: ConversationStatus) -> bool:
    """Return True when ``current -> target`` is a declared edge."""

    return target in _TRANSITIONS[current]


def advance(current: ConversationStatus, target: ConversationStatus) -> ConversationStatus:
    """Validate a status change and return the new status."""

    if not can_transition(current, target):
        raise InvalidTransition(current, target)
    return target


class Conversation(BaseModel):
    """Domain snapshot of a single upload and its processing results."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    owner_id: str
    original_filename: str
    mime_type: str
    size_bytes: int
    storage_key: str = ""
    status: ConversationStatus = ConversationStatus.INITIAL
    transcript_text: Optional[str] = None
    summary_text: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


def is_reupload_eligible(conversation: Conversation) -> bool:
    """A record may be re-uploaded only when its blob write never succeeded."""

    return (
        conversation.status == ConversationStatus.INITIAL
        and not (conversation.storage_key or "").strip()
    )


def has_stored_blob(conversation: Conversation) -> bool:
    """Whether a blob was ever written for this record (the negation of re-upload eligibility)."""

    return not is_reupload_eligible(conversation)


__all__ = [
    "Conversation",
    "ConversationStatus",
    "InvalidTransition",
    "advance",
    "can_transition",
    "has_stored_blob",
    "is_reupload_eligible",
]
