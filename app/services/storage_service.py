"""Object storage service for uploaded contract files."""

import logging
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import quote
from uuid import UUID

import httpx

from app.core.config import settings
from app.exceptions.pipeline import ConfigurationError, StorageError

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    """Location of a stored object."""

    file_name: str
    file_path: str
    file_url: str


class StorageService:
    """Stores files through the object storage REST API.

    Objects are written to ``<bucket>/<user_id>/<epoch_ms>.<ext>`` and served
    from the bucket's public URL. No type or size checks happen here.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        bucket: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.storage_url or "").rstrip("/")
        self.api_key = api_key or settings.storage_api_key
        self.bucket = bucket or settings.storage_bucket
        self.http_client = http_client

    def _validate_config(self):
        if not self.base_url or not self.api_key:
            raise ConfigurationError("Object storage is not configured")

    @staticmethod
    def build_object_path(user_id: UUID, file_name: str, now_ms: int | None = None) -> str:
        """Per-user object path keeping the original extension."""
        suffix = PurePosixPath(file_name).suffix.lstrip(".")
        stamp = now_ms if now_ms is not None else int(time.time() * 1000)
        name = f"{stamp}.{suffix}" if suffix else str(stamp)
        return f"{user_id}/{name}"

    def get_public_url(self, file_path: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{quote(file_path)}"

    async def upload(
        self,
        user_id: UUID,
        file_name: str,
        data: bytes,
        content_type: str | None = None,
    ) -> StoredFile:
        """Upload a file and return its retrievable URL.

        Args:
            user_id: Owner of the file, used as the path prefix.
            file_name: Original file name.
            data: File contents.
            content_type: MIME type forwarded to storage.

        Returns:
            StoredFile with the object path and public URL.

        Raises:
            ConfigurationError: If storage is not configured.
            StorageError: If the storage API rejects or cannot receive the file.
        """
        self._validate_config()

        file_path = self.build_object_path(user_id, file_name)
        upload_url = f"{self.base_url}/object/{self.bucket}/{quote(file_path)}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": content_type or "application/octet-stream",
        }

        try:
            if self.http_client is not None:
                response = await self.http_client.post(upload_url, content=data, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=settings.storage_timeout) as client:
                    response = await client.post(upload_url, content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Storage upload failed for {file_name}: {str(e)}")
            raise StorageError(f"Failed to upload {file_name}") from e

        if response.is_error:
            logger.error(
                f"Storage rejected {file_name}: {response.status_code} {response.text[:200]}"
            )
            raise StorageError(
                f"Failed to upload {file_name}",
                details={"status": response.status_code},
            )

        logger.info(f"📁 Stored {file_name} at {file_path} ({len(data)} bytes)")
        return StoredFile(
            file_name=file_name,
            file_path=file_path,
            file_url=self.get_public_url(file_path),
        )
