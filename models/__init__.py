"""
Models package initialization.
"""

from .base import Base, BaseModel
from .contract import Contract
from .conversation import Conversation
from .message import Message, SenderType

__all__ = [
    "Base",
    "BaseModel",
    "Conversation",
    "Message",
    "SenderType",
    "Contract",
]
