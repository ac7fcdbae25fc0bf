"""
Unit tests for request/response schemas.
"""

import json
import uuid
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.schemas.analysis import AnalysisRequest, MessageType
from app.schemas.conversation import ConversationResponse, TimeGroup, get_time_group
from app.schemas.memory import (
    MemoryMessage,
    MemoryRequest,
    create_contract_context,
    create_memory_message,
    format_memory_for_ai,
)
from app.schemas.message import ActionButton, ButtonVariant, MessageResponse

NOW = datetime(2026, 3, 15, 12, 0, 0)


class TestTimeGroups:
    """Test cases for sidebar time buckets."""

    @pytest.mark.parametrize(
        "age, expected",
        [
            (timedelta(minutes=5), TimeGroup.TODAY),
            (timedelta(hours=23, minutes=59), TimeGroup.TODAY),
            (timedelta(days=1), TimeGroup.YESTERDAY),
            (timedelta(days=1, hours=23), TimeGroup.YESTERDAY),
            (timedelta(days=2), TimeGroup.LAST_7_DAYS),
            (timedelta(days=6, hours=23), TimeGroup.LAST_7_DAYS),
            (timedelta(days=7), TimeGroup.OLDER),
            (timedelta(days=400), TimeGroup.OLDER),
        ],
    )
    def test_buckets(self, age, expected):
        assert get_time_group(NOW - age, now=NOW) == expected

    def test_aware_timestamps_are_converted(self):
        created = datetime(2026, 3, 15, 13, 0, tzinfo=timezone(timedelta(hours=2)))

        assert get_time_group(created, now=NOW) == TimeGroup.TODAY

    def test_response_exposes_time_group(self):
        conversation = ConversationResponse(
            id=uuid.uuid4(),
            created_at=datetime.now(UTC),
            updated_at=datetime.now(UTC),
            user_id=uuid.uuid4(),
            session_id="s",
        )

        assert conversation.model_dump()["time_group"] == TimeGroup.TODAY


class TestAnalysisRequest:
    """Test cases for relay payload validation."""

    def test_text_message_requires_content(self):
        with pytest.raises(PydanticValidationError):
            AnalysisRequest(message_type=MessageType.TEXT_MESSAGE, message_content="   ")

    def test_file_upload_requires_file_reference(self):
        with pytest.raises(PydanticValidationError):
            AnalysisRequest(message_type=MessageType.FILE_UPLOAD, file_name="nda.pdf")

    def test_button_action_requires_id(self):
        with pytest.raises(PydanticValidationError):
            AnalysisRequest(message_type=MessageType.BUTTON_ACTION, message_content="Tips")

    def test_unknown_message_type(self):
        with pytest.raises(PydanticValidationError):
            AnalysisRequest(message_type="voice_note", message_content="Hi")

    def test_valid_file_upload(self):
        request = AnalysisRequest(
            message_type="file_upload", file_name="nda.pdf", file_url="https://storage.test/nda.pdf"
        )

        assert request.conversation_id is None
        assert request.message_content is None


class TestActionButton:
    def test_defaults(self):
        button = ActionButton(id="a", label="A")

        assert button.variant == ButtonVariant.DEFAULT
        assert button.icon is None

    def test_destructive_variant(self):
        assert ActionButton(id="a", label="A", variant="destructive").variant == ButtonVariant.DESTRUCTIVE


class TestMessageResponse:
    """Test cases for message serialization."""

    def _payload(self, **overrides):
        payload = {
            "id": uuid.uuid4(),
            "created_at": NOW,
            "conversation_id": uuid.uuid4(),
            "content": "Reply",
            "sender_type": "assistant",
        }
        payload.update(overrides)
        return payload

    def test_action_buttons_decoded_from_json_text(self):
        buttons = json.dumps([{"id": "a", "label": "A", "variant": "outline"}])

        message = MessageResponse(**self._payload(action_buttons=buttons))

        assert message.action_buttons[0].variant == ButtonVariant.OUTLINE

    @pytest.mark.parametrize("raw", [None, "", "not json", "[]", "{}"])
    def test_missing_or_invalid_buttons_become_none(self, raw):
        assert MessageResponse(**self._payload(action_buttons=raw)).action_buttons is None

    def test_metadata_alias(self):
        message = MessageResponse.model_validate(
            self._payload(message_metadata={"message_type": "text_response"})
        )

        assert message.metadata == {"message_type": "text_response"}

    def test_null_metadata_becomes_empty(self):
        assert MessageResponse(**self._payload(metadata=None)).metadata == {}


class TestMemorySchemas:
    def test_create_memory_message(self):
        message = create_memory_message("assistant", "Hello", {"agent": "n8n"})

        assert message.role == "assistant"
        assert message.timestamp is not None
        assert message.metadata == {"agent": "n8n"}

    def test_role_is_restricted(self):
        with pytest.raises(PydanticValidationError):
            MemoryMessage(role="robot", content="beep")

    def test_request_limit_bounds(self):
        with pytest.raises(PydanticValidationError):
            MemoryRequest(action="get-memory", session_id="s", limit=0)

    def test_contract_context(self):
        context = create_contract_context(
            "c-1", "nda.pdf", "https://storage.test/nda.pdf", analysis_summary="Mutual NDA"
        )

        assert context.analysis_summary == "Mutual NDA"
        assert context.uploaded_at

    def test_format_memory_for_ai(self):
        messages = [
            MemoryMessage(role="user", content="Hi"),
            MemoryMessage(role="assistant", content="Hello"),
        ]

        assert format_memory_for_ai(messages) == "user: Hi\nassistant: Hello"
