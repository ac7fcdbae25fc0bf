"""
Unit tests for the conversation, message and contract services.
"""

import json
import uuid

import pytest
from sqlalchemy import select

from app.domains.contract.service import ContractService
from app.domains.conversation.service import ConversationService
from app.domains.message.service import MessageService
from app.exceptions.base import NotFoundError
from app.exceptions.pipeline import PersistenceError
from models import Contract, Message, SenderType


class TestConversationService:
    """Test cases for ConversationService."""

    @pytest.mark.asyncio
    async def test_create_uses_id_as_session(self, test_db, test_user_id):
        service = ConversationService(test_db)

        conversation = await service.create_conversation(test_user_id, title="Lease")

        assert conversation.user_id == test_user_id
        assert conversation.title == "Lease"
        assert conversation.session_id == str(conversation.id)

    @pytest.mark.asyncio
    async def test_list_is_owner_scoped(self, test_db, test_user_id, test_conversation, other_conversation):
        service = ConversationService(test_db)

        conversations = await service.list_conversations(test_user_id)

        assert [c.id for c in conversations] == [test_conversation.id]

    @pytest.mark.asyncio
    async def test_list_most_recent_first(self, test_db, test_user_id):
        service = ConversationService(test_db)
        first = await service.create_conversation(test_user_id, title="first")
        second = await service.create_conversation(test_user_id, title="second")

        conversations = await service.list_conversations(test_user_id)

        assert [c.id for c in conversations] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_get_foreign_conversation_is_not_found(self, test_db, test_user_id, other_conversation):
        service = ConversationService(test_db)

        with pytest.raises(NotFoundError):
            await service.get_conversation(other_conversation.id, test_user_id)

    @pytest.mark.asyncio
    async def test_rename(self, test_db, test_user_id, test_conversation):
        service = ConversationService(test_db)

        renamed = await service.rename_conversation(test_conversation.id, "Renamed", test_user_id)

        assert renamed.title == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_cascades(self, test_db, test_user_id, test_conversation, test_message, test_contract):
        """Deleting a conversation leaves none of its messages or contracts behind."""
        conversation_id = test_conversation.id
        service = ConversationService(test_db)

        assert await service.delete_conversation(conversation_id, test_user_id) is True

        messages = await test_db.execute(select(Message).where(Message.conversation_id == conversation_id))
        contracts = await test_db.execute(select(Contract).where(Contract.conversation_id == conversation_id))
        assert messages.scalars().all() == []
        assert contracts.scalars().all() == []
        with pytest.raises(NotFoundError):
            await service.get_conversation(conversation_id, test_user_id)


class TestMessageService:
    """Test cases for MessageService."""

    @pytest.mark.asyncio
    async def test_messages_in_creation_order(self, test_db, test_conversation):
        service = MessageService(test_db)
        first = await service.save_user_message(test_conversation.id, "first")
        second = await service.create_message(
            test_conversation.id, "second", SenderType.ASSISTANT, agent_used="n8n-workflow"
        )

        messages = await service.list_messages(test_conversation.id)

        assert [m.id for m in messages] == [first.id, second.id]
        assert first.created_at <= second.created_at

    @pytest.mark.asyncio
    async def test_file_message_default_content(self, test_db, test_conversation):
        service = MessageService(test_db)

        message = await service.save_file_message(
            test_conversation.id, "nda.pdf", "https://storage.test/nda.pdf"
        )

        assert message.sender_type == SenderType.FILE
        assert message.content == "Uploaded file: nda.pdf"
        assert message.file_url == "https://storage.test/nda.pdf"

    @pytest.mark.asyncio
    async def test_action_buttons_stored_as_json_text(self, test_db, test_conversation):
        service = MessageService(test_db)
        buttons = [{"id": "a", "label": "A", "variant": "default"}]

        message = await service.create_message(
            test_conversation.id, "reply", SenderType.ASSISTANT, action_buttons=buttons
        )

        assert json.loads(message.action_buttons) == buttons

    @pytest.mark.asyncio
    async def test_empty_action_buttons_stored_as_null(self, test_db, test_conversation):
        service = MessageService(test_db)

        message = await service.create_message(
            test_conversation.id, "reply", SenderType.ASSISTANT, action_buttons=[]
        )

        assert message.action_buttons is None
        assert message.message_metadata == {}


class TestContractService:
    """Test cases for ContractService."""

    @pytest.mark.asyncio
    async def test_create_requires_conversation(self, test_db):
        service = ContractService(test_db)

        with pytest.raises(PersistenceError):
            await service.create_contract(uuid.uuid4(), "nda.pdf", "https://storage.test/nda.pdf")

    @pytest.mark.asyncio
    async def test_list_is_owner_scoped(
        self, test_db, test_user_id, test_contract, other_conversation
    ):
        service = ContractService(test_db)
        await service.create_contract(other_conversation.id, "theirs.pdf", "https://storage.test/t.pdf")

        contracts = await service.list_contracts(test_user_id)

        assert [c.id for c in contracts] == [test_contract.id]

    @pytest.mark.asyncio
    async def test_delete_foreign_contract_is_not_found(self, test_db, other_user_id, test_contract):
        service = ContractService(test_db)

        with pytest.raises(NotFoundError):
            await service.delete_contract(test_contract.id, other_user_id)

    @pytest.mark.asyncio
    async def test_delete_contract(self, test_db, test_user_id, test_contract):
        service = ContractService(test_db)

        assert await service.delete_contract(test_contract.id, test_user_id) is True
        assert await service.list_contracts(test_user_id) == []
