"""Conversation schemas for request/response serialization."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import Field, computed_field

from models.base import utcnow

from .base import BaseModelSchema, BaseSchema


class TimeGroup(str, Enum):
    """Sidebar bucket derived from a conversation's creation time."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last7days"
    OLDER = "older"


def get_time_group(created_at: datetime, now: datetime | None = None) -> TimeGroup:
    """Bucket a creation timestamp relative to ``now`` (naive UTC)."""
    now = now or utcnow()
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(UTC).replace(tzinfo=None)
    age_days = (now - created_at).total_seconds() / 86400

    if age_days < 1:
        return TimeGroup.TODAY
    if age_days < 2:
        return TimeGroup.YESTERDAY
    if age_days < 7:
        return TimeGroup.LAST_7_DAYS
    return TimeGroup.OLDER


class ConversationCreate(BaseSchema):
    """Schema for creating a conversation."""

    title: str | None = Field(None, max_length=255, description="Optional conversation title")


class ConversationUpdate(BaseSchema):
    """Schema for renaming a conversation."""

    title: str = Field(..., min_length=1, max_length=255, description="New conversation title")


class ConversationResponse(BaseModelSchema):
    """Schema for conversation response."""

    user_id: UUID
    title: str | None = None
    session_id: str
    updated_at: datetime

    @computed_field
    @property
    def time_group(self) -> TimeGroup:
        return get_time_group(self.created_at)
