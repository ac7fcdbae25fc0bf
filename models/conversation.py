"""
Conversation model for contract analysis chat threads.
"""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, utcnow


class Conversation(BaseModel):
    """
    A chat thread owned by exactly one user.

    ``session_id`` keys the conversation in the external memory service and
    defaults to the conversation id.
    """

    __tablename__ = "conversations"

    user_id = Column(UUID(), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    session_id = Column(String(255), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    messages = relationship(
        "Message",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )
    contracts = relationship(
        "Contract",
        back_populates="conversation",
        cascade="all, delete-orphan",
    )
