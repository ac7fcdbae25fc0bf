"""Best-effort client for the conversational memory relay.

Every public call here swallows failures: callers get ``False`` or an empty
list and must read an empty list as "unknown", not "no history".
"""

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.exceptions.pipeline import MemoryServiceError
from app.schemas.memory import ContractContext, MemoryAction, MemoryMessage

logger = logging.getLogger(__name__)


class MemorySink(Protocol):
    """Where pipeline components append conversational memory.

    Implementations report success as a boolean and never raise.
    """

    async def add_memory_message(self, session_id: str, message: MemoryMessage) -> bool: ...


class MemoryClient:
    """Facade over the memory relay endpoint.

    The relay holds the memory service credentials; this client only knows
    the relay URL.
    """

    def __init__(
        self,
        relay_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        access_token: str | None = None,
    ):
        """Initialize the memory client.

        Args:
            relay_url: Memory relay endpoint, defaults to ``settings.memory_relay_url``.
            http_client: Shared client; a short-lived one is opened per call otherwise.
            timeout: Request timeout in seconds.
            access_token: Bearer token forwarded to the relay.
        """
        self.relay_url = relay_url or settings.memory_relay_url
        self.http_client = http_client
        self.timeout = timeout or settings.memory_request_timeout
        self.access_token = access_token

    async def initialize_session(self, session_id: str) -> bool:
        """Create the memory session; an existing session counts as success."""
        try:
            await self._invoke(MemoryAction.INITIALIZE_SESSION, session_id)
            return True
        except MemoryServiceError as e:
            logger.warning(f"Memory session initialization failed for {session_id}: {e.message}")
            return False

    async def add_memory_message(self, session_id: str, message: MemoryMessage) -> bool:
        try:
            await self._invoke(
                MemoryAction.ADD_MEMORY, session_id, message=message.model_dump(mode="json")
            )
            return True
        except MemoryServiceError as e:
            logger.warning(f"Error adding memory for {session_id}: {e.message}")
            return False

    async def get_memory(self, session_id: str, limit: int = 50) -> list[MemoryMessage]:
        try:
            data = await self._invoke(MemoryAction.GET_MEMORY, session_id, limit=limit)
            return self._parse_messages(data)
        except MemoryServiceError as e:
            logger.warning(f"Error getting memory for {session_id}: {e.message}")
            return []

    async def search_memory(self, session_id: str, query: str, limit: int = 10) -> list[MemoryMessage]:
        try:
            data = await self._invoke(
                MemoryAction.SEARCH_MEMORY, session_id, query=query, limit=limit
            )
            return self._parse_messages(data)
        except MemoryServiceError as e:
            logger.warning(f"Error searching memory for {session_id}: {e.message}")
            return []

    async def store_contract_context(self, session_id: str, context: ContractContext) -> bool:
        try:
            await self._invoke(
                MemoryAction.STORE_CONTEXT, session_id, context=context.model_dump(mode="json")
            )
            return True
        except MemoryServiceError as e:
            logger.warning(f"Error storing contract context for {session_id}: {e.message}")
            return False

    # Private helper methods

    async def _invoke(self, action: MemoryAction, session_id: str, **payload: Any) -> dict:
        """POST one action to the relay, turning every failure into MemoryServiceError."""
        body = {"action": action.value, "session_id": session_id, **payload}
        headers = {"Authorization": f"Bearer {self.access_token}"} if self.access_token else {}

        try:
            if self.http_client is not None:
                response = await self.http_client.post(self.relay_url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.relay_url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise MemoryServiceError(f"Memory relay unreachable: {str(e)}") from e

        if response.is_error:
            raise MemoryServiceError(
                f"Memory relay returned {response.status_code}",
                details={"action": action.value, "status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MemoryServiceError("Memory relay returned invalid JSON") from e
        if not isinstance(data, dict):
            raise MemoryServiceError("Memory relay returned an unexpected payload")
        return data

    @staticmethod
    def _parse_messages(data: dict) -> list[MemoryMessage]:
        messages = []
        for raw in data.get("messages") or []:
            # search hits wrap the message with a score
            if isinstance(raw, dict) and isinstance(raw.get("message"), dict):
                raw = raw["message"]
            try:
                messages.append(MemoryMessage.model_validate(raw))
            except PydanticValidationError:
                logger.debug(f"Skipping unreadable memory entry: {raw!r}")
        return messages


# Create singleton instance
memory_client = MemoryClient()
