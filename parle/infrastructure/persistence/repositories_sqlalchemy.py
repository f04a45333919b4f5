from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parle.application.interfaces import ConversationRepositoryInterface
from parle.domain.conversation import Conversation, ConversationStatus
from parle.models.conversation import ConversationEntity, utc_now

_MUTABLE_FIELDS = frozenset(
    {
        "original_filename",
        "mime_type",
        "size_bytes",
        "storage_key",
        "status",
        "transcript_text",
        "summary_text",
        "error_message",
    }
)


class SQLAlchemyConversationRepository(ConversationRepositoryInterface):
    """SQLAlchemy implementation of the conversation repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_entity(
        self,
        conversation_id: UUID,
        owner_id: str,
    ) -> Optional[ConversationEntity]:
        result = await self.session.execute(
            select(ConversationEntity).where(
                ConversationEntity.id == conversation_id,
                ConversationEntity.owner_id == owner_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        owner_id: str,
        original_filename: str,
        mime_type: str,
        size_bytes: int,
    ) -> Conversation:
        db_conversation = ConversationEntity(
            owner_id=owner_id,
            original_filename=original_filename,
            mime_type=mime_type,
            size_bytes=size_bytes,
            storage_key="",
            status=ConversationStatus.INITIAL,
        )
        self.session.add(db_conversation)
        await self.session.commit()
        await self.session.refresh(db_conversation)
        return Conversation.model_validate(db_conversation)

    async def get(self, conversation_id: UUID, owner_id: str) -> Optional[Conversation]:
        db_conversation = await self._get_entity(conversation_id, owner_id)
        return Conversation.model_validate(db_conversation) if db_conversation else None

    async def list_for_owner(self, owner_id: str) -> List[Conversation]:
        result = await self.session.execute(
            select(ConversationEntity)
            .where(ConversationEntity.owner_id == owner_id)
            .order_by(ConversationEntity.created_at.desc())
        )
        rows = result.scalars().all()
        return [Conversation.model_validate(row) for row in rows]

    async def update(
        self,
        conversation_id: UUID,
        owner_id: str,
        **changes: Any,
    ) -> Optional[Conversation]:
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update conversation fields: {sorted(unknown)}")

        db_conversation = await self._get_entity(conversation_id, owner_id)
        if not db_conversation:
            return None

        for field, value in changes.items():
            setattr(db_conversation, field, value)
        db_conversation.updated_at = utc_now()
        await self.session.commit()
        await self.session.refresh(db_conversation)
        return Conversation.model_validate(db_conversation)

    async def delete(self, conversation_id: UUID, owner_id: str) -> bool:
        db_conversation = await self._get_entity(conversation_id, owner_id)
        if not db_conversation:
            return False
        await self.session.delete(db_conversation)
        await self.session.commit()
        return True
