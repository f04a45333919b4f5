"""Translate pipeline failures into HTTP errors."""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status

from parle.pipelines.conversation import (
    ConversationNotFound,
    PipelineError,
    ProcessingFailed,
    StorageWriteFailed,
    ValidationFailed,
)

NOT_FOUND_DETAIL = "Transcript not found"


def not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_DETAIL)


def parse_conversation_id(raw_id: str) -> UUID:
    """Malformed ids cannot exist, so they are reported as not found."""

    try:
        return UUID(raw_id)
    except ValueError:
        raise not_found() from None


def to_http_exception(
    exc: PipelineError,
    *,
    processing_status: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Map a pipeline error onto its HTTP status and response body."""

    if isinstance(exc, ConversationNotFound):
        return not_found()
    if isinstance(exc, ValidationFailed):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, StorageWriteFailed):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": "Upload failed",
                "conversationId": str(exc.conversation.id),
                "status": exc.conversation.status.value,
            },
        )
    if isinstance(exc, ProcessingFailed):
        return HTTPException(
            status_code=processing_status,
            detail={
                "message": str(exc),
                "conversationId": str(exc.conversation.id),
                "status": exc.conversation.status.value,
            },
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


__all__ = ["NOT_FOUND_DETAIL", "not_found", "parse_conversation_id", "to_http_exception"]
