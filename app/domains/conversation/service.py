"""Conversation service layer over the relational store."""

import logging
import uuid
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import NotFoundError
from app.exceptions.pipeline import PersistenceError
from models.conversation import Conversation

logger = logging.getLogger(__name__)


class ConversationService:
    """Service class for conversation records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_conversation(self, user_id: UUID, title: str | None = None) -> Conversation:
        """Create a conversation whose memory session id is its own id."""
        conversation_id = uuid.uuid4()
        conversation = Conversation(
            id=conversation_id,
            user_id=user_id,
            title=title,
            session_id=str(conversation_id),
        )

        try:
            self.db.add(conversation)
            await self.db.commit()
            await self.db.refresh(conversation)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create conversation: {str(e)}")
            raise PersistenceError(f"Failed to create conversation: {str(e)}") from e

        logger.info(f"Created conversation {conversation.id} for user {user_id}")
        return conversation

    async def list_conversations(self, user_id: UUID) -> list[Conversation]:
        """Conversations of a user, most recently updated first."""
        stmt = (
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(desc(Conversation.updated_at), desc(Conversation.created_at))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_conversation(self, conversation_id: UUID, user_id: UUID) -> Conversation:
        conversation = await self._get_conversation_by_id_and_user(conversation_id, user_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        return conversation

    async def get_conversation_by_session(self, session_id: str, user_id: UUID) -> Conversation:
        """Conversation of a user owning the given memory session."""
        stmt = select(Conversation).where(
            Conversation.session_id == session_id, Conversation.user_id == user_id
        )
        result = await self.db.execute(stmt)
        conversation = result.scalars().first()
        if not conversation:
            raise NotFoundError("Memory session not found")
        return conversation

    async def rename_conversation(self, conversation_id: UUID, title: str, user_id: UUID) -> Conversation:
        conversation = await self.get_conversation(conversation_id, user_id)
        conversation.title = title

        try:
            await self.db.commit()
            await self.db.refresh(conversation)
            return conversation
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to update conversation title: {str(e)}") from e

    async def delete_conversation(self, conversation_id: UUID, user_id: UUID) -> bool:
        """Delete a conversation together with its messages and contracts."""
        conversation = await self.get_conversation(conversation_id, user_id)

        try:
            await self.db.delete(conversation)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to delete conversation: {str(e)}") from e

        logger.info(f"Deleted conversation {conversation_id}")
        return True

    # Private helper methods

    async def _get_conversation_by_id_and_user(
        self, conversation_id: UUID, user_id: UUID
    ) -> Conversation | None:
        stmt = select(Conversation).where(
            Conversation.id == conversation_id, Conversation.user_id == user_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
