from abc import ABC, abstractmethod
from typing import Any, List, Optional
from uuid import UUID

from parle.domain.conversation import Conversation


class ConversationRepositoryInterface(ABC):
    """Persistence contract for conversation records.

    Every method is scoped by ``owner_id``; a record owned by someone else
    behaves exactly like a missing one.
    """

    @abstractmethod
    async def create(
        self,
        *,
        owner_id: str,
        original_filename: str,
        mime_type: str,
        size_bytes: int,
    ) -> Conversation:
        ...

    @abstractmethod
    async def get(self, conversation_id: UUID, owner_id: str) -> Optional[Conversation]:
        ...

    @abstractmethod
    async def list_for_owner(self, owner_id: str) -> List[Conversation]:
        ...

    @abstractmethod
    async def update(
        self,
        conversation_id: UUID,
        owner_id: str,
        **changes: Any,
    ) -> Optional[Conversation]:
        ...

    @abstractmethod
    async def delete(self, conversation_id: UUID, owner_id: str) -> bool:
        ...
