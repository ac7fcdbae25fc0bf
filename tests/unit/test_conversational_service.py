"""
Unit tests for the built-in conversational responder.
"""

import json
import uuid

import pytest

from app.domains.conversational.service import (
    AGENT_LABEL,
    REPLIES,
    ConversationalService,
    Intent,
    classify_intent,
)
from app.exceptions.pipeline import PersistenceError
from app.schemas.analysis import ConversationalRequest
from models import SenderType


class TestClassifyIntent:
    """Test cases for keyword routing."""

    @pytest.mark.parametrize(
        "content, expected",
        [
            ("Hello there", Intent.GREETING),
            ("hey, can you help with my contract?", Intent.GREETING),
            ("I need help", Intent.HELP),
            ("What can you do?", Intent.HELP),
            ("Is this agreement enforceable?", Intent.CONTRACT),
            ("Any LEGAL issues here", Intent.CONTRACT),
            ("Tell me a joke", Intent.OTHER),
            ("This is something different", Intent.OTHER),
        ],
    )
    def test_routing(self, content, expected):
        assert classify_intent(content) == expected

    def test_every_intent_has_a_reply_with_actions(self):
        for intent in Intent:
            assert REPLIES[intent].text
            assert REPLIES[intent].actions


class TestConversationalService:
    """Test cases for ConversationalService.respond."""

    @pytest.mark.asyncio
    async def test_reply_is_persisted(self, test_db, test_conversation):
        service = ConversationalService(test_db)

        message = await service.respond(
            ConversationalRequest(conversation_id=test_conversation.id, message_content="hi")
        )

        assert message.sender_type == SenderType.ASSISTANT
        assert message.agent_used == AGENT_LABEL
        assert message.content == REPLIES[Intent.GREETING].text
        assert json.loads(message.action_buttons) == REPLIES[Intent.GREETING].actions
        assert message.message_metadata["message_type"] == "conversational_response"

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, test_db):
        service = ConversationalService(test_db)

        with pytest.raises(PersistenceError):
            await service.respond(
                ConversationalRequest(conversation_id=uuid.uuid4(), message_content="hi")
            )

    @pytest.mark.asyncio
    async def test_memory_appended_with_session(self, test_db, test_conversation, memory_sink):
        service = ConversationalService(test_db, memory=memory_sink)

        await service.respond(
            ConversationalRequest(
                conversation_id=test_conversation.id,
                message_content="help",
                zep_session_id=test_conversation.session_id,
            )
        )

        session_id, memory_message = memory_sink.add_memory_message.await_args.args
        assert session_id == test_conversation.session_id
        assert memory_message.role == "assistant"
        assert memory_message.content == REPLIES[Intent.HELP].text

    @pytest.mark.asyncio
    async def test_no_memory_without_session(self, test_db, test_conversation, memory_sink):
        service = ConversationalService(test_db, memory=memory_sink)

        await service.respond(
            ConversationalRequest(conversation_id=test_conversation.id, message_content="help")
        )

        memory_sink.add_memory_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_memory_failure_does_not_fail_reply(self, test_db, test_conversation, memory_sink):
        memory_sink.add_memory_message.side_effect = RuntimeError("memory down")
        service = ConversationalService(test_db, memory=memory_sink)

        message = await service.respond(
            ConversationalRequest(
                conversation_id=test_conversation.id,
                message_content="contract question",
                zep_session_id="s-1",
            )
        )

        assert message.content == REPLIES[Intent.CONTRACT].text
