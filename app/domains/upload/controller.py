"""File upload endpoint backed by object storage."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.dependencies import get_current_user_id
from app.schemas.base import ResponseSchema
from app.schemas.upload import UploadResponse
from app.services.storage_service import StorageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


def get_storage_service() -> StorageService:
    return StorageService()


@router.post("", response_model=ResponseSchema, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    user_id: UUID = Depends(get_current_user_id),
    storage: StorageService = Depends(get_storage_service),
):
    """Store a file and return its retrievable URL."""
    data = await file.read()
    stored = await storage.upload(
        user_id,
        file.filename or "upload",
        data,
        content_type=file.content_type,
    )

    return ResponseSchema(
        status="success",
        message="File uploaded successfully",
        data=UploadResponse(
            file_name=stored.file_name,
            file_path=stored.file_path,
            file_url=stored.file_url,
        ).model_dump(),
    )
