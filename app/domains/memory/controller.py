"""Memory relay endpoint."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_relay_user_id, uses_fallback_identity
from app.domains.conversation.service import ConversationService
from app.domains.memory.service import ZepMemoryService
from app.exceptions.base import AuthenticationError, BaseAppException
from app.schemas.memory import MemoryRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["memory"])


def get_memory_service() -> ZepMemoryService:
    return ZepMemoryService()


@router.post("/zep-memory")
async def zep_memory(
    request: Request,
    memory_request: MemoryRequest = Body(...),
    user_id: UUID = Depends(get_relay_user_id),
    db: AsyncSession = Depends(get_db),
    service: ZepMemoryService = Depends(get_memory_service),
):
    """Run one memory action on a session owned by the caller."""
    try:
        if uses_fallback_identity(request):
            raise AuthenticationError("Memory relay requires an authenticated caller")
        await ConversationService(db).get_conversation_by_session(memory_request.session_id, user_id)
        return await service.handle(memory_request)
    except BaseAppException as e:
        logger.error(f"Memory relay {memory_request.action.value} failed: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.message, "error_code": e.error_code},
        )
