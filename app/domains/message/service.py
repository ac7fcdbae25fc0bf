"""Message service layer over the relational store."""

import json
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.pipeline import PersistenceError
from models.base import utcnow
from models.conversation import Conversation
from models.message import Message, SenderType

logger = logging.getLogger(__name__)


class MessageService:
    """Service class for message records. Messages are insert-only."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_messages(self, conversation_id: UUID) -> list[Message]:
        """All messages of a conversation in creation order."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at, Message.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def save_user_message(
        self, conversation_id: UUID, content: str, session_id: str | None = None
    ) -> Message:
        return await self.create_message(
            conversation_id=conversation_id,
            content=content,
            sender_type=SenderType.USER,
            session_id=session_id,
        )

    async def save_file_message(
        self,
        conversation_id: UUID,
        file_name: str,
        file_url: str,
        content: str | None = None,
        session_id: str | None = None,
    ) -> Message:
        return await self.create_message(
            conversation_id=conversation_id,
            content=content or f"Uploaded file: {file_name}",
            sender_type=SenderType.FILE,
            file_name=file_name,
            file_url=file_url,
            session_id=session_id,
        )

    async def create_message(
        self,
        conversation_id: UUID,
        content: str,
        sender_type: SenderType,
        agent_used: str | None = None,
        file_name: str | None = None,
        file_url: str | None = None,
        action_buttons: list[dict[str, Any]] | None = None,
        metadata: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Message:
        """Insert one message and mark its conversation as updated.

        Raises:
            PersistenceError: If the insert fails.
        """
        message = Message(
            conversation_id=conversation_id,
            content=content,
            sender_type=sender_type,
            agent_used=agent_used,
            file_name=file_name,
            file_url=file_url,
            action_buttons=json.dumps(action_buttons) if action_buttons else None,
            message_metadata=metadata or {},
            session_id=session_id,
        )

        try:
            self.db.add(message)
            await self.db.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(updated_at=utcnow())
            )
            await self.db.commit()
            await self.db.refresh(message)
            return message
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save {sender_type.value} message: {str(e)}")
            raise PersistenceError(f"Failed to save {sender_type.value} message: {str(e)}") from e
