"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse, HealthResponse
from .conversations import AudioUrlResponse, ConversationResponse, UploadResponse

__all__ = [
    "AudioUrlResponse",
    "ConversationResponse",
    "ErrorResponse",
    "HealthResponse",
    "UploadResponse",
]
