"""
Message model for conversation entries.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, JSONType


class SenderType(str, enum.Enum):
    """Who authored a message."""

    USER = "user"
    ASSISTANT = "assistant"
    FILE = "file"


class Message(BaseModel):
    """
    Represents a single immutable message in a conversation.

    ``action_buttons`` holds the suggested actions serialized as JSON text and
    is left null when the assistant suggested none.
    """

    __tablename__ = "messages"

    conversation_id = Column(
        UUID(), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    sender_type = Column(
        Enum(
            SenderType,
            name="sender_type",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    agent_used = Column(String(100), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_url = Column(String(1000), nullable=True)
    action_buttons = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    message_metadata = Column("metadata", JSONType, nullable=True)
    session_id = Column(String(255), nullable=True)

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")
