"""Conversational responder endpoint."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_relay_user_id, uses_fallback_identity
from app.domains.analysis.controller import get_memory_sink
from app.domains.conversational.service import ConversationalService
from app.exceptions.base import BaseAppException
from app.schemas.analysis import ConversationalRequest
from app.schemas.base import ResponseSchema
from app.schemas.message import MessageResponse
from app.services.memory_client import MemorySink

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["conversational"])


@router.post("/conversational-ai", response_model=ResponseSchema)
async def conversational_ai(
    request: Request,
    conversational_request: ConversationalRequest = Body(...),
    user_id: UUID = Depends(get_relay_user_id),
    db: AsyncSession = Depends(get_db),
    memory: MemorySink = Depends(get_memory_sink),
):
    """Reply to a message without calling the workflow engine."""
    owner_id = None if uses_fallback_identity(request) else user_id
    try:
        service = ConversationalService(db, memory=memory)
        message = await service.respond(conversational_request, owner_id=owner_id)
    except BaseAppException as e:
        logger.error(f"Conversational AI failed: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "error": e.message, "error_code": e.error_code},
        )

    return ResponseSchema(
        status="success",
        message="Conversational AI response generated successfully",
        data=MessageResponse.model_validate(message).model_dump(mode="json"),
    )
