"""Contract schemas for request/response serialization."""

from uuid import UUID

from .base import BaseModelSchema


class ContractResponse(BaseModelSchema):
    """Schema for contract response."""

    conversation_id: UUID
    file_name: str
    file_url: str
    full_text: str | None = None
    overview: str | None = None
