"""Transcript endpoints: listing, retrieval, deletion and recovery operations."""

import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Response, UploadFile, status

from parle.config.settings import settings
from parle.controllers.dependencies import CurrentOwnerDep, OrchestratorDep
from parle.controllers.errors import parse_conversation_id, to_http_exception
from parle.pipelines.conversation import PipelineError, read_upload
from parle.services.storage import StorageError
from parle.views import AudioUrlResponse, ConversationResponse, ErrorResponse

router = APIRouter(
    prefix="/transcripts",
    tags=["transcripts"],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)

logger = logging.getLogger(__name__)

_AUDIO_FILE_UPLOAD = File(None)


@router.get("", response_model=list[ConversationResponse])
async def list_transcripts(
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
) -> list[ConversationResponse]:
    """Return the caller's conversations, newest first."""

    conversations = await orchestrator.list_for_owner(owner_id)
    logger.info("Retrieved transcripts owner=%s count=%s", owner_id, len(conversations))
    return [ConversationResponse.model_validate(c) for c in conversations]


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_transcript(
    conversation_id: str,
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
) -> ConversationResponse:
    try:
        conversation = await orchestrator.get(parse_conversation_id(conversation_id), owner_id)
    except PipelineError as exc:
        raise to_http_exception(exc) from exc
    return ConversationResponse.model_validate(conversation)


@router.get("/{conversation_id}/audio-url", response_model=AudioUrlResponse)
async def get_audio_url(
    conversation_id: str,
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
) -> AudioUrlResponse:
    """Issue a time-limited URL for playing back the stored audio."""

    try:
        url = await orchestrator.audio_url(parse_conversation_id(conversation_id), owner_id)
    except PipelineError as exc:
        raise to_http_exception(exc) from exc
    except StorageError as exc:
        logger.error("Signed URL generation failed conversation=%s: %s", conversation_id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not generate audio URL",
        ) from exc

    return AudioUrlResponse(url=url, expires_in=settings.storage.signed_url_ttl_seconds)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transcript(
    conversation_id: str,
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
) -> Response:
    """Delete the record; the stored audio is removed on a best-effort basis."""

    try:
        await orchestrator.delete(parse_conversation_id(conversation_id), owner_id)
    except PipelineError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{conversation_id}/regenerate-transcript", response_model=ConversationResponse)
async def regenerate_transcript(
    conversation_id: str,
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
) -> ConversationResponse:
    """Transcribe the stored audio again. Any existing summary is cleared."""

    try:
        conversation = await orchestrator.regenerate_transcript(
            parse_conversation_id(conversation_id),
            owner_id,
        )
    except PipelineError as exc:
        raise to_http_exception(exc) from exc
    return ConversationResponse.model_validate(conversation)


@router.put("/{conversation_id}/regenerate-summary", response_model=ConversationResponse)
async def regenerate_summary(
    conversation_id: str,
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
) -> ConversationResponse:
    try:
        conversation = await orchestrator.regenerate_summary(
            parse_conversation_id(conversation_id),
            owner_id,
        )
    except PipelineError as exc:
        raise to_http_exception(exc) from exc
    return ConversationResponse.model_validate(conversation)


@router.post("/{conversation_id}/re-upload", response_model=ConversationResponse)
async def re_upload(
    conversation_id: str,
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
    audio: Optional[UploadFile] = _AUDIO_FILE_UPLOAD,
) -> ConversationResponse:
    """Upload a new file for a record whose original storage write failed."""

    parsed_id = parse_conversation_id(conversation_id)
    if audio is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No audio file provided",
        )

    upload = await read_upload(audio, max_size_bytes=settings.upload.max_size_bytes)
    try:
        conversation = await orchestrator.re_upload(parsed_id, owner_id, upload)
    except PipelineError as exc:
        logger.warning("Re-upload failed conversation=%s: %s", conversation_id, exc)
        raise to_http_exception(exc) from exc
    return ConversationResponse.model_validate(conversation)
