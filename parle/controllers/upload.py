"""Audio upload endpoint.

`POST /upload` runs the whole pipeline inside the request: the record is
created, the blob stored, then transcription and summarization run in turn.
See `parle.pipelines.conversation.orchestrator` for the state transitions.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from parle.config.settings import settings
from parle.controllers.dependencies import CurrentOwnerDep, OrchestratorDep
from parle.controllers.errors import to_http_exception
from parle.pipelines.conversation import PipelineError, read_upload
from parle.views import ErrorResponse, UploadResponse

router = APIRouter(
    prefix="/upload",
    tags=["upload"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)

logger = logging.getLogger(__name__)

_AUDIO_FILE_UPLOAD = File(None)


@router.post("", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_audio(
    owner_id: CurrentOwnerDep,
    orchestrator: OrchestratorDep,
    audio: Optional[UploadFile] = _AUDIO_FILE_UPLOAD,
) -> UploadResponse:
    """Store an MP3/MP4/M4A file, transcribe it and summarize the transcript."""

    if audio is None:
        logger.warning("Upload rejected: no audio file provided owner=%s", owner_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No audio file provided",
        )

    upload = await read_upload(audio, max_size_bytes=settings.upload.max_size_bytes)
    try:
        conversation = await orchestrator.submit(owner_id, upload)
    except PipelineError as exc:
        logger.warning(
            "Upload failed owner=%s file=%s: %s",
            owner_id,
            upload.filename,
            exc,
        )
        raise to_http_exception(
            exc,
            processing_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ) from exc

    return UploadResponse.from_conversation(conversation, settings.upload.preview_length)
