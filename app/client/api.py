"""HTTP client for the contract analysis API."""

import logging
from typing import Any
from uuid import UUID

import httpx

from app.exceptions.base import BaseAppException
from app.exceptions.pipeline import map_pipeline_error
from app.schemas.analysis import AnalysisRequest, AnalysisResponse
from app.schemas.conversation import ConversationResponse
from app.schemas.message import MessageResponse
from app.schemas.upload import UploadResponse

logger = logging.getLogger(__name__)


class ContractChatApi:
    """Typed wrapper around the API endpoints used by the orchestrator.

    Error responses are turned back into the matching application exception;
    transport failures propagate as ``httpx`` errors.
    """

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 130.0,
    ):
        if http_client is None:
            http_client = httpx.AsyncClient(base_url=base_url or "", timeout=timeout)
        self.http_client = http_client
        self.headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}

    async def aclose(self) -> None:
        await self.http_client.aclose()

    # Conversations

    async def list_conversations(self) -> list[ConversationResponse]:
        data = await self._request("GET", "/api/conversations")
        return [ConversationResponse.model_validate(item) for item in data]

    async def create_conversation(self, title: str | None = None) -> ConversationResponse:
        data = await self._request("POST", "/api/conversations", json={"title": title})
        return ConversationResponse.model_validate(data)

    async def rename_conversation(self, conversation_id: UUID, title: str) -> ConversationResponse:
        data = await self._request(
            "PATCH", f"/api/conversations/{conversation_id}", json={"title": title}
        )
        return ConversationResponse.model_validate(data)

    async def delete_conversation(self, conversation_id: UUID) -> None:
        await self._request("DELETE", f"/api/conversations/{conversation_id}")

    # Messages

    async def list_messages(self, conversation_id: UUID) -> list[MessageResponse]:
        data = await self._request("GET", f"/api/conversations/{conversation_id}/messages")
        return [MessageResponse.model_validate(item) for item in data]

    async def create_user_message(self, conversation_id: UUID, content: str) -> MessageResponse:
        data = await self._request(
            "POST", f"/api/conversations/{conversation_id}/messages", json={"content": content}
        )
        return MessageResponse.model_validate(data)

    async def create_file_message(
        self, conversation_id: UUID, file_name: str, file_url: str
    ) -> MessageResponse:
        data = await self._request(
            "POST",
            f"/api/conversations/{conversation_id}/messages/file",
            json={"file_name": file_name, "file_url": file_url},
        )
        return MessageResponse.model_validate(data)

    # Uploads and analysis

    async def upload_file(
        self, file_name: str, data: bytes, content_type: str | None = None
    ) -> UploadResponse:
        files = {"file": (file_name, data, content_type or "application/octet-stream")}
        payload = await self._request("POST", "/api/uploads", files=files)
        return UploadResponse.model_validate(payload)

    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        """Call the analysis relay once. Retries are the caller's concern."""
        response = await self.http_client.post(
            "/api/contract-analysis",
            json=request.model_dump(mode="json", exclude_none=True),
            headers=self.headers,
        )
        body = self._json(response)
        if response.is_error or body.get("success") is False:
            raise self._to_exception(response, body)
        return AnalysisResponse.model_validate(body)

    # Private helper methods

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request to an enveloped endpoint and return its ``data``."""
        response = await self.http_client.request(method, path, headers=self.headers, **kwargs)
        body = self._json(response)
        if response.is_error:
            raise self._to_exception(response, body)
        return body.get("data")

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _to_exception(response: httpx.Response, body: dict[str, Any]) -> BaseAppException:
        message = body.get("error") or body.get("message") or f"Request failed with {response.status_code}"
        details = body.get("details") if isinstance(body.get("details"), dict) else {}
        error = map_pipeline_error(body.get("error_code"), message, details)
        logger.debug(
            f"{response.request.method} {response.request.url.path} -> "
            f"{response.status_code} {error.error_code}"
        )
        return error
