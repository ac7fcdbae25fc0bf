"""
Contract model for uploaded documents that went through analysis.
"""

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Contract(BaseModel):
    """
    Represents an analyzed contract file attached to a conversation.
    """

    __tablename__ = "contracts"

    conversation_id = Column(
        UUID(), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    full_text = Column(Text, nullable=True)
    overview = Column(Text, nullable=True)

    # Relationships
    conversation = relationship("Conversation", back_populates="contracts")
