"""SQLAlchemy models."""

from .base import Base
from .conversation import ConversationEntity  # noqa: F401

__all__ = [
    "Base",
    "ConversationEntity",
]
