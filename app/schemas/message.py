"""Message schemas for request/response serialization."""

import json
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from models.message import SenderType

from .base import BaseModelSchema, BaseSchema


class ButtonVariant(str, Enum):
    """Visual variant of a suggested action."""

    DEFAULT = "default"
    OUTLINE = "outline"
    DESTRUCTIVE = "destructive"


class ActionButton(BaseSchema):
    """A clickable follow-up suggested by the assistant."""

    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Action identifier sent back on click")
    label: str = Field(..., min_length=1, description="Display label")
    variant: ButtonVariant = Field(default=ButtonVariant.DEFAULT, description="Visual variant")
    icon: str | None = Field(None, description="Optional icon reference")

    @field_validator("variant", mode="before")
    @classmethod
    def default_unknown_variant(cls, v):
        if isinstance(v, ButtonVariant):
            return v
        if v not in tuple(variant.value for variant in ButtonVariant):
            return ButtonVariant.DEFAULT
        return v


class MessageCreate(BaseSchema):
    """Schema for persisting a user-authored message."""

    content: str = Field(..., min_length=1, max_length=20000, description="Message content")


class FileMessageCreate(BaseSchema):
    """Schema for persisting a file message."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1000)
    content: str | None = Field(None, description="Defaults to 'Uploaded file: <name>'")


class MessageResponse(BaseModelSchema):
    """Schema for message response."""

    conversation_id: UUID
    content: str
    sender_type: SenderType
    agent_used: str | None = None
    file_name: str | None = None
    file_url: str | None = None
    action_buttons: list[ActionButton] | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("message_metadata", "metadata"),
    )
    session_id: str | None = None

    @field_validator("action_buttons", mode="before")
    @classmethod
    def decode_action_buttons(cls, v):
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                return None
        if not isinstance(v, list) or not v:
            return None
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v):
        return v if isinstance(v, dict) else {}
