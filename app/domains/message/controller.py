"""Message API controller with FastAPI endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db
from app.domains.conversation.service import ConversationService
from app.domains.message.service import MessageService
from app.schemas.base import ResponseSchema
from app.schemas.message import FileMessageCreate, MessageCreate, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=ResponseSchema)
async def list_messages(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """All messages of a conversation, oldest first."""
    await ConversationService(db).get_conversation(conversation_id, user_id)
    messages = await MessageService(db).list_messages(conversation_id)

    return ResponseSchema(
        status="success",
        message="Messages retrieved successfully",
        data=[MessageResponse.model_validate(m).model_dump(mode="json") for m in messages],
    )


@router.post("/{conversation_id}/messages", response_model=ResponseSchema, status_code=201)
async def create_user_message(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    message_data: MessageCreate = Body(...),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Persist a user-authored message."""
    conversation = await ConversationService(db).get_conversation(conversation_id, user_id)
    message = await MessageService(db).save_user_message(
        conversation_id, message_data.content, session_id=conversation.session_id
    )

    return ResponseSchema(
        status="success",
        message="Message created successfully",
        data=MessageResponse.model_validate(message).model_dump(mode="json"),
    )


@router.post("/{conversation_id}/messages/file", response_model=ResponseSchema, status_code=201)
async def create_file_message(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    message_data: FileMessageCreate = Body(...),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Persist a file message for an uploaded document."""
    conversation = await ConversationService(db).get_conversation(conversation_id, user_id)
    message = await MessageService(db).save_file_message(
        conversation_id,
        file_name=message_data.file_name,
        file_url=message_data.file_url,
        content=message_data.content,
        session_id=conversation.session_id,
    )

    return ResponseSchema(
        status="success",
        message="File message created successfully",
        data=MessageResponse.model_validate(message).model_dump(mode="json"),
    )
