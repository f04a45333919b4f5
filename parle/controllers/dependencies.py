"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from parle.application.interfaces import ConversationRepositoryInterface
from parle.config.settings import settings
from parle.database import get_session
from parle.infrastructure.persistence.repositories_sqlalchemy import (
    SQLAlchemyConversationRepository,
)
from parle.pipelines.conversation import PipelineOrchestrator
from parle.services.factory import Collaborators
from parle.utils import AuthenticationError, decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_owner(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    """Resolve the owner id from the identity provider's bearer token."""

    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("Authentication failed: missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    request.state.owner_id = payload.sub
    return payload.sub


CurrentOwnerDep = Annotated[str, Depends(get_current_owner)]


def get_repository(session: SessionDep) -> ConversationRepositoryInterface:
    return SQLAlchemyConversationRepository(session)


def get_collaborators(request: Request) -> Collaborators:
    """Return the backends selected at startup."""

    return request.app.state.collaborators


def get_orchestrator(
    repository: Annotated[ConversationRepositoryInterface, Depends(get_repository)],
    collaborators: Annotated[Collaborators, Depends(get_collaborators)],
) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        repository,
        collaborators.storage,
        collaborators.transcriber,
        collaborators.summarizer,
        max_upload_bytes=settings.upload.max_size_bytes,
        signed_url_ttl_seconds=settings.storage.signed_url_ttl_seconds,
    )


OrchestratorDep = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]


__all__ = [
    "CurrentOwnerDep",
    "OrchestratorDep",
    "SessionDep",
    "bearer_scheme",
    "get_collaborators",
    "get_current_owner",
    "get_orchestrator",
    "get_repository",
]
