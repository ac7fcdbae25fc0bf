"""Contract API controller with FastAPI endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id, get_db
from app.domains.contract.service import ContractService
from app.schemas.base import ResponseSchema
from app.schemas.contract import ContractResponse

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.get("", response_model=ResponseSchema)
async def list_contracts(
    conversation_id: UUID | None = Query(None, description="Restrict to one conversation"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Analyzed contracts across the caller's conversations, newest first."""
    contracts = await ContractService(db).list_contracts(user_id, conversation_id=conversation_id)

    return ResponseSchema(
        status="success",
        message="Contracts retrieved successfully",
        data=[ContractResponse.model_validate(c).model_dump(mode="json") for c in contracts],
    )


@router.delete("/{contract_id}", response_model=ResponseSchema)
async def delete_contract(
    contract_id: UUID = Path(..., description="Contract ID"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await ContractService(db).delete_contract(contract_id, user_id)
    return ResponseSchema(status="success", message="Contract deleted successfully", data=None)
