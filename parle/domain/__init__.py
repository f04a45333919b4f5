"""Domain models shared by the pipeline, persistence and HTTP layers."""

from .conversation import (
    Conversation,
    ConversationStatus,
    InvalidTransition,
    advance,
    can_transition,
    has_stored_blob,
    is_reupload_eligible,
)

__all__ = [
    "Conversation",
    "ConversationStatus",
    "InvalidTransition",
    "advance",
    "can_transition",
    "has_stored_blob",
    "is_reupload_eligible",
]
