"""Contract analysis relay endpoint."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_relay_user_id, optional_security, uses_fallback_identity
from app.domains.analysis.service import ContractAnalysisService
from app.exceptions.base import BaseAppException
from app.schemas.analysis import AnalysisErrorResponse, AnalysisRequest, AnalysisResponse
from app.services.memory_client import MemoryClient, MemorySink, memory_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


def get_memory_sink(
    token: HTTPAuthorizationCredentials | None = Depends(optional_security),
) -> MemorySink:
    """Memory client acting as the caller, so the memory relay can scope the session."""
    if token and token.credentials:
        return MemoryClient(access_token=token.credentials)
    return memory_client


def get_analysis_service(
    db: AsyncSession = Depends(get_db),
    memory: MemorySink = Depends(get_memory_sink),
) -> ContractAnalysisService:
    return ContractAnalysisService(db, memory=memory)


@router.post("/contract-analysis", response_model=AnalysisResponse)
async def contract_analysis(
    request: Request,
    analysis_request: AnalysisRequest = Body(...),
    user_id: UUID = Depends(get_relay_user_id),
    service: ContractAnalysisService = Depends(get_analysis_service),
):
    """Forward a chat interaction to the workflow engine and store its reply."""
    try:
        return await service.process(
            analysis_request, user_id, enforce_ownership=not uses_fallback_identity(request)
        )

    except BaseAppException as e:
        logger.error(f"Contract analysis failed [{e.error_code}]: {e.message}")
        return JSONResponse(
            status_code=e.status_code,
            content=AnalysisErrorResponse(error=e.message, error_code=e.error_code).model_dump(),
        )

    except Exception as e:
        logger.exception(f"Unexpected error in contract analysis: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=AnalysisErrorResponse(
                error="Internal server error", error_code="INTERNAL_ERROR"
            ).model_dump(),
        )
