"""Conversation API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db
from app.domains.conversation.service import ConversationService
from app.schemas.base import ResponseSchema
from app.schemas.conversation import ConversationCreate, ConversationResponse, ConversationUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.post("", response_model=ResponseSchema, status_code=201)
async def create_conversation(
    conversation_data: ConversationCreate | None = Body(None),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a new conversation."""
    service = ConversationService(db)
    conversation = await service.create_conversation(
        user_id, title=conversation_data.title if conversation_data else None
    )

    return ResponseSchema(
        status="success",
        message="Conversation created successfully",
        data=ConversationResponse.model_validate(conversation).model_dump(mode="json"),
    )


@router.get("", response_model=ResponseSchema)
async def list_conversations(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's conversations, most recent first."""
    service = ConversationService(db)
    conversations = await service.list_conversations(user_id)

    return ResponseSchema(
        status="success",
        message="Conversations retrieved successfully",
        data=[
            ConversationResponse.model_validate(c).model_dump(mode="json") for c in conversations
        ],
    )


@router.get("/{conversation_id}", response_model=ResponseSchema)
async def get_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = ConversationService(db)
    conversation = await service.get_conversation(conversation_id, user_id)

    return ResponseSchema(
        status="success",
        message="Conversation retrieved successfully",
        data=ConversationResponse.model_validate(conversation).model_dump(mode="json"),
    )


@router.patch("/{conversation_id}", response_model=ResponseSchema)
async def rename_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    conversation_data: ConversationUpdate = Body(...),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Rename a conversation."""
    service = ConversationService(db)
    conversation = await service.rename_conversation(
        conversation_id, conversation_data.title, user_id
    )

    return ResponseSchema(
        status="success",
        message="Conversation updated successfully",
        data=ConversationResponse.model_validate(conversation).model_dump(mode="json"),
    )


@router.delete("/{conversation_id}", response_model=ResponseSchema)
async def delete_conversation(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a conversation with its messages and contracts."""
    service = ConversationService(db)
    await service.delete_conversation(conversation_id, user_id)

    return ResponseSchema(status="success", message="Conversation deleted successfully", data=None)
