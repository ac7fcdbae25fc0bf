"""Memory relay service holding the memory service credentials."""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from app.core.config import settings
from app.exceptions.base import ValidationError
from app.exceptions.pipeline import ConfigurationError, MemoryServiceError
from app.schemas.memory import MemoryAction, MemoryRequest

logger = logging.getLogger(__name__)

CONTEXT_STORED_TEXT = "Contract context stored"


class ZepMemoryService:
    """Translates memory relay actions into memory service REST calls."""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_url = (api_url or settings.zep_api_url or "").rstrip("/")
        self.api_key = api_key or settings.zep_api_key
        self.http_client = http_client

    def _validate_config(self):
        if not self.api_url or not self.api_key:
            raise ConfigurationError("Memory service credentials not configured")

    async def handle(self, request: MemoryRequest) -> dict[str, Any]:
        """Dispatch one relay request to its action."""
        self._validate_config()

        if request.action == MemoryAction.INITIALIZE_SESSION:
            await self.initialize_session(request.session_id)
            return {"success": True}

        if request.action == MemoryAction.ADD_MEMORY:
            if request.message is None:
                raise ValidationError("add-memory requires a message")
            await self.add_memory(request.session_id, request.message.model_dump(mode="json"))
            return {"success": True}

        if request.action == MemoryAction.GET_MEMORY:
            return {"messages": await self.get_memory(request.session_id, request.limit)}

        if request.action == MemoryAction.SEARCH_MEMORY:
            if not request.query:
                raise ValidationError("search-memory requires a query")
            return {"messages": await self.search_memory(request.session_id, request.query, request.limit)}

        # store-context
        await self.store_context(request.session_id, request.context or {})
        return {"success": True}

    async def initialize_session(self, session_id: str) -> None:
        """Create a session. An existing session (409) is not an error."""
        body = {
            "session_id": session_id,
            "metadata": {
                "created_at": datetime.now(UTC).isoformat(),
                "user_type": "contract_analysis",
            },
        }
        response = await self._request("POST", f"/sessions/{session_id}", json=body)
        if response.is_error and response.status_code != 409:
            raise MemoryServiceError(
                f"Failed to initialize memory session: {response.status_code}",
                details={"status": response.status_code},
            )
        if response.status_code == 409:
            logger.info(f"Memory session {session_id} already exists")

    async def add_memory(self, session_id: str, message: dict[str, Any]) -> None:
        body = {"messages": [message], "metadata": message.get("metadata") or {}}
        response = await self._request("POST", f"/sessions/{session_id}/memory", json=body)
        self._raise_for_status(response, "add memory")

    async def get_memory(self, session_id: str, limit: int = 50) -> list[Any]:
        response = await self._request(
            "GET", f"/sessions/{session_id}/memory", params={"limit": limit}
        )
        self._raise_for_status(response, "get memory")
        return self._json(response).get("messages") or []

    async def search_memory(self, session_id: str, query: str, limit: int = 10) -> list[Any]:
        response = await self._request(
            "POST", f"/sessions/{session_id}/search", json={"text": query, "limit": limit}
        )
        self._raise_for_status(response, "search memory")
        return self._json(response).get("results") or []

    async def store_context(self, session_id: str, context: dict[str, Any]) -> None:
        """Keep contract context as a system message in the session."""
        body = {
            "messages": [
                {"role": "system", "content": CONTEXT_STORED_TEXT, "metadata": context}
            ]
        }
        response = await self._request("POST", f"/sessions/{session_id}/memory", json=body)
        self._raise_for_status(response, "store context")

    # Private helper methods

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.api_url}{path}"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            if self.http_client is not None:
                return await self.http_client.request(method, url, headers=headers, **kwargs)
            async with httpx.AsyncClient(timeout=settings.memory_request_timeout) as client:
                return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Memory service request {method} {path} failed: {str(e)}")
            raise MemoryServiceError(f"Memory service unreachable: {str(e)}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.is_error:
            raise MemoryServiceError(
                f"Failed to {operation}: {response.status_code}",
                details={"status": response.status_code},
            )

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise MemoryServiceError("Memory service returned invalid JSON") from e
        return data if isinstance(data, dict) else {}
