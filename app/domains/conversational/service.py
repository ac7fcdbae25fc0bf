"""Built-in conversational responder used when no workflow is involved."""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.message.service import MessageService
from app.exceptions.base import NotFoundError
from app.exceptions.pipeline import PersistenceError
from app.schemas.analysis import ConversationalRequest
from app.schemas.memory import create_memory_message
from app.services.memory_client import MemorySink
from models.conversation import Conversation
from models.message import Message, SenderType

logger = logging.getLogger(__name__)

AGENT_LABEL = "conversational-ai"
RESPONSE_KIND = "conversational_response"


class Intent(str, Enum):
    GREETING = "greeting"
    HELP = "help"
    CONTRACT = "contract"
    OTHER = "other"


@dataclass
class CannedReply:
    text: str
    actions: list[dict[str, Any]] = field(default_factory=list)


_GREETING_PATTERN = re.compile(r"\b(hello|hi|hey)\b")
_HELP_PATTERN = re.compile(r"\bhelp\b|what can you do")
_CONTRACT_PATTERN = re.compile(r"contract|legal|agreement")

REPLIES: dict[Intent, CannedReply] = {
    Intent.GREETING: CannedReply(
        text=(
            "Hello! I review contracts and other legal documents with you.\n\n"
            "**I can help with:**\n"
            "• 📄 Risk review of a contract\n"
            "• ⚖️ Reading individual clauses\n"
            "• 💼 Preparing for a negotiation\n"
            "• 🔍 Pulling out the key terms\n\n"
            "Upload a contract to start, or ask a question."
        ),
        actions=[
            {"id": "upload_contract", "label": "Upload Contract", "variant": "default"},
            {"id": "contract_tips", "label": "Contract Review Tips", "variant": "outline"},
        ],
    ),
    Intent.HELP: CannedReply(
        text=(
            "I focus on contract analysis.\n\n"
            "**📋 Analysis:** risk and compliance review, clause interpretation, "
            "comparison with common market terms.\n\n"
            "**🔍 Documents:** employment agreements, NDAs, service and consulting contracts.\n\n"
            "Upload a document for a full review, or ask about a specific clause."
        ),
        actions=[
            {"id": "upload_contract", "label": "Upload Document", "variant": "default"},
            {"id": "ask_legal_question", "label": "Ask Legal Question", "variant": "outline"},
        ],
    ),
    Intent.CONTRACT: CannedReply(
        text=(
            "Happy to look at that with you.\n\n"
            "The most precise answer comes from the document itself, so consider uploading it. "
            "In the meantime I can explain contract terms, flag common risk factors, "
            "point out negotiation levers and compare against typical agreements.\n\n"
            "Which of these would help most?"
        ),
        actions=[
            {"id": "upload_contract", "label": "Upload for Analysis", "variant": "default"},
            {"id": "general_advice", "label": "General Contract Advice", "variant": "outline"},
            {"id": "negotiation_tips", "label": "Negotiation Strategies", "variant": "outline"},
        ],
    ),
    Intent.OTHER: CannedReply(
        text=(
            "Thanks for your message! I work best with a specific contract in front of me.\n\n"
            "Without one I can still cover review best practices, common clauses "
            "and negotiation approaches.\n\n"
            "Would you like to upload a contract, or pick a topic?"
        ),
        actions=[
            {"id": "upload_contract", "label": "Upload Contract", "variant": "default"},
            {"id": "general_guidance", "label": "General Guidance", "variant": "outline"},
        ],
    ),
}


def classify_intent(message_content: str) -> Intent:
    """Route a message by keyword; the first matching intent wins."""
    lowered = message_content.lower()
    if _GREETING_PATTERN.search(lowered):
        return Intent.GREETING
    if _HELP_PATTERN.search(lowered):
        return Intent.HELP
    if _CONTRACT_PATTERN.search(lowered):
        return Intent.CONTRACT
    return Intent.OTHER


class ConversationalService:
    """Answers a message with a canned reply and stores it."""

    def __init__(self, db: AsyncSession, memory: MemorySink | None = None):
        self.db = db
        self.memory = memory
        self.messages = MessageService(db)

    async def respond(self, request: ConversationalRequest, owner_id: UUID | None = None) -> Message:
        """Store the canned reply; with ``owner_id`` the conversation must belong to it."""
        conversation = await self.db.get(Conversation, request.conversation_id)
        if conversation is None:
            raise PersistenceError(
                "Conversation does not exist",
                details={"conversation_id": str(request.conversation_id)},
            )
        if owner_id is not None and conversation.user_id != owner_id:
            raise NotFoundError("Conversation not found")

        intent = classify_intent(request.message_content)
        reply = REPLIES[intent]
        logger.info(f"Conversational reply for {request.conversation_id}: {intent.value}")

        message = await self.messages.create_message(
            conversation_id=request.conversation_id,
            content=reply.text,
            sender_type=SenderType.ASSISTANT,
            agent_used=AGENT_LABEL,
            action_buttons=reply.actions,
            metadata={
                "message_type": RESPONSE_KIND,
                "processed_at": datetime.now(UTC).isoformat(),
            },
            session_id=request.zep_session_id,
        )

        if request.zep_session_id and self.memory is not None:
            memory_message = create_memory_message(
                "assistant",
                reply.text,
                {"message_type": RESPONSE_KIND, "conversation_id": str(request.conversation_id)},
            )
            try:
                await self.memory.add_memory_message(request.zep_session_id, memory_message)
            except Exception as e:
                logger.warning(f"Memory storage failed for {request.zep_session_id}: {str(e)}")

        return message
