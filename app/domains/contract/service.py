"""Contract service layer over the relational store."""

import logging
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import NotFoundError
from app.exceptions.pipeline import PersistenceError
from models.contract import Contract
from models.conversation import Conversation

logger = logging.getLogger(__name__)


class ContractService:
    """Service class for contract records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_contract(
        self,
        conversation_id: UUID,
        file_name: str,
        file_url: str,
        full_text: str | None = None,
        overview: str | None = None,
    ) -> Contract:
        """Insert a contract for an existing conversation.

        Raises:
            PersistenceError: If the conversation is missing or the insert fails.
        """
        conversation = await self.db.get(Conversation, conversation_id)
        if conversation is None:
            raise PersistenceError(
                "Cannot store contract for unknown conversation",
                details={"conversation_id": str(conversation_id)},
            )

        contract = Contract(
            conversation_id=conversation_id,
            file_name=file_name,
            file_url=file_url,
            full_text=full_text,
            overview=overview,
        )

        try:
            self.db.add(contract)
            await self.db.commit()
            await self.db.refresh(contract)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error storing contract: {str(e)}")
            raise PersistenceError(f"Failed to store contract: {str(e)}") from e

        logger.info(f"Contract record {contract.id} created for {file_name}")
        return contract

    async def list_contracts(self, user_id: UUID, conversation_id: UUID | None = None) -> list[Contract]:
        """Contracts across the user's conversations, newest first."""
        stmt = (
            select(Contract)
            .join(Conversation, Contract.conversation_id == Conversation.id)
            .where(Conversation.user_id == user_id)
        )
        if conversation_id:
            stmt = stmt.where(Contract.conversation_id == conversation_id)
        stmt = stmt.order_by(desc(Contract.created_at))

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def delete_contract(self, contract_id: UUID, user_id: UUID) -> bool:
        stmt = (
            select(Contract)
            .join(Conversation, Contract.conversation_id == Conversation.id)
            .where(Contract.id == contract_id, Conversation.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        contract = result.scalar_one_or_none()
        if not contract:
            raise NotFoundError("Contract not found")

        try:
            await self.db.delete(contract)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to delete contract: {str(e)}") from e
