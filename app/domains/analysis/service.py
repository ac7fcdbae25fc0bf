"""Contract analysis relay service.

Forwards one chat interaction to the workflow engine, normalizes whatever
the engine answers and persists the derived records.
"""

import logging
import uuid
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domains.analysis.normalizer import NormalizedResponse, normalize
from app.domains.contract.service import ContractService
from app.domains.message.service import MessageService
from app.exceptions.base import NotFoundError
from app.exceptions.pipeline import ConfigurationError, PersistenceError, UpstreamError
from app.schemas.analysis import (
    RESPONSE_KIND_BY_MESSAGE_TYPE,
    AnalysisRequest,
    AnalysisResponse,
    MessageType,
)
from app.schemas.memory import create_memory_message
from app.services.memory_client import MemorySink
from models.conversation import Conversation
from models.message import SenderType

logger = logging.getLogger(__name__)


class ContractAnalysisService:
    """Relay between the chat client and the workflow engine."""

    def __init__(
        self,
        db: AsyncSession,
        memory: MemorySink | None = None,
        http_client: httpx.AsyncClient | None = None,
        webhook_url: str | None = None,
    ):
        self.db = db
        self.memory = memory
        self.http_client = http_client
        self.webhook_url = webhook_url if webhook_url is not None else settings.n8n_webhook_url
        self.contracts = ContractService(db)
        self.messages = MessageService(db)

    async def process(
        self, request: AnalysisRequest, user_id: UUID, enforce_ownership: bool = True
    ) -> AnalysisResponse:
        """Run one relay call end to end.

        Args:
            request: Validated inbound request.
            user_id: Resolved caller identity.
            enforce_ownership: Reject conversations owned by another user. Off when
                the caller is the fallback identity.

        Returns:
            AnalysisResponse carrying the structured result.

        Raises:
            ConfigurationError: If the workflow endpoint is not configured.
            NotFoundError: If the conversation belongs to another user.
            UpstreamError: If the workflow call fails or answers non-2xx.
            UpstreamResponseError: If the workflow answer has no usable text.
            PersistenceError: If a derived record cannot be written.
        """
        if enforce_ownership and request.conversation_id is not None:
            await self.authorize(request.conversation_id, user_id)

        payload = self.enrich(request, user_id)
        logger.info(
            f"🚀 Forwarding {request.message_type.value} for conversation {payload['conversation_id']}"
        )

        raw_body = await self.call_workflow(payload)
        normalized = normalize(raw_body)
        logger.info(
            f"Workflow response resolved as {normalized.shape.value} with {len(normalized.actions)} actions"
        )

        conversation_id = UUID(payload["conversation_id"])
        await self.persist(request, conversation_id, payload["session_id"], normalized)
        await self.record_memory(payload["session_id"], request, normalized)

        return AnalysisResponse(analysis=normalized.structured_result)

    async def authorize(self, conversation_id: UUID, user_id: UUID) -> None:
        conversation = await self.db.get(Conversation, conversation_id)
        if conversation is not None and conversation.user_id != user_id:
            logger.warning(f"User {user_id} tried to relay into conversation {conversation_id}")
            raise NotFoundError("Conversation not found")

    def enrich(self, request: AnalysisRequest, user_id: UUID) -> dict[str, Any]:
        """Build the outbound webhook payload."""
        conversation_id = str(request.conversation_id or uuid.uuid4())
        return {
            "conversation_id": conversation_id,
            "session_id": request.session_id or conversation_id,
            "message_content": request.message_content or "",
            "message_type": request.message_type.value,
            "file_url": request.file_url,
            "file_name": request.file_name,
            "button_action": request.button_action,
            "user_id": str(user_id),
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def call_workflow(self, payload: dict[str, Any]) -> str:
        """POST the payload to the workflow engine and return the raw body."""
        if not self.webhook_url:
            raise ConfigurationError("Workflow webhook URL is not configured")

        try:
            if self.http_client is not None:
                response = await self.http_client.post(self.webhook_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=settings.webhook_timeout) as client:
                    response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Workflow request failed: {str(e)}")
            raise UpstreamError(f"Workflow engine unreachable: {str(e)}") from e

        if response.is_error:
            logger.error(f"Workflow returned {response.status_code}: {response.text[:500]}")
            raise UpstreamError(
                f"Workflow engine returned {response.status_code}",
                status=response.status_code,
            )

        return response.text

    async def persist(
        self,
        request: AnalysisRequest,
        conversation_id: UUID,
        session_id: str,
        normalized: NormalizedResponse,
    ) -> None:
        """Write the contract (uploads only) and the assistant reply."""
        if await self.db.get(Conversation, conversation_id) is None:
            raise PersistenceError(
                "Conversation does not exist",
                details={"conversation_id": str(conversation_id)},
            )

        structured = normalized.structured_result
        structured_fields = structured if isinstance(structured, dict) else {}

        if request.message_type == MessageType.FILE_UPLOAD:
            await self.contracts.create_contract(
                conversation_id=conversation_id,
                file_name=request.file_name,
                file_url=request.file_url,
                full_text=structured_fields.get("full_text"),
                overview=structured_fields.get("content") or normalized.text,
            )

        metadata = {
            "message_type": RESPONSE_KIND_BY_MESSAGE_TYPE[request.message_type],
            "workflow_processed": True,
            "processed_at": datetime.now(UTC).isoformat(),
        }
        if structured is not None:
            metadata["analysis_result"] = structured
        if request.message_type == MessageType.FILE_UPLOAD:
            metadata["file_processed"] = request.file_name

        await self.messages.create_message(
            conversation_id=conversation_id,
            content=normalized.text,
            sender_type=SenderType.ASSISTANT,
            agent_used=settings.workflow_agent_label,
            action_buttons=normalized.actions_as_dicts() or None,
            metadata=metadata,
            session_id=session_id,
        )

    async def record_memory(
        self, session_id: str, request: AnalysisRequest, normalized: NormalizedResponse
    ) -> None:
        """Append the assistant reply to conversational memory. Never raises."""
        if self.memory is None:
            return

        message = create_memory_message(
            "assistant",
            normalized.text,
            {"message_type": request.message_type.value, "agent": settings.workflow_agent_label},
        )
        try:
            stored = await self.memory.add_memory_message(session_id, message)
        except Exception as e:
            logger.warning(f"Memory update failed for session {session_id}: {str(e)}")
            return
        if not stored:
            logger.warning(f"Memory update skipped for session {session_id}")
