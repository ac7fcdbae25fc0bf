"""
End-to-end tests: the orchestrator drives the real application over ASGI.

Only the workflow engine, object storage and memory service are faked.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from app.client.api import ContractChatApi
from app.client.orchestrator import ConversationOrchestrator, TEXT_RELAY_FAILED
from app.client.retry import RetryPolicy
from app.client.state import RequestStatus
from app.client.validation import UploadCandidate
from app.domains.analysis.controller import get_analysis_service
from app.domains.analysis.service import ContractAnalysisService
from app.domains.upload.controller import get_storage_service
from app.exceptions.base import NotFoundError
from app.main import app
from app.services.storage_service import StorageService
from models import Contract

WEBHOOK_URL = "http://workflow.test/webhook/contract"
STORAGE_URL = "https://storage.test/storage/v1"


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeWorkflow:
    """Workflow engine answering from a script, repeating the last entry."""

    def __init__(self, *answers: tuple[int, object]):
        self.answers = list(answers)
        self.payloads: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.payloads.append(json.loads(request.content))
        status_code, body = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        return httpx.Response(status_code, json=body)


@pytest_asyncio.fixture
async def harness(authenticated_client, test_db, memory_sink):
    """Wire a workflow script, storage fake and orchestrator to the app."""
    clients = []
    sleep = SleepRecorder()

    def build(*answers, memory=None):
        workflow = FakeWorkflow(*answers)
        workflow_client = httpx.AsyncClient(transport=httpx.MockTransport(workflow))
        storage_client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )
        clients.extend([workflow_client, storage_client])

        app.dependency_overrides[get_analysis_service] = lambda: ContractAnalysisService(
            test_db, memory=memory_sink, http_client=workflow_client, webhook_url=WEBHOOK_URL
        )
        app.dependency_overrides[get_storage_service] = lambda: StorageService(
            base_url=STORAGE_URL, api_key="service-key", http_client=storage_client
        )

        api = ContractChatApi(http_client=authenticated_client)
        orchestrator = ConversationOrchestrator(
            api, memory=memory, retry_policy=RetryPolicy(sleep=sleep)
        )
        return orchestrator, workflow

    build.sleep = sleep
    yield build

    for http_client in clients:
        await http_client.aclose()


OK_ANSWER = (
    200,
    [
        {
            "output": "The termination clause favors the employer.",
            "action_buttons": [{"id": "explain_termination", "label": "Explain termination"}],
        }
    ],
)


class TestChatFlow:
    """Complete chat round trips."""

    @pytest.mark.asyncio
    async def test_text_round_trip(self, harness):
        orchestrator, workflow = harness(OK_ANSWER)

        conversation = await orchestrator.new_conversation()
        sent = await orchestrator.send_message("  Is the termination clause fair?  ")

        assert sent is True
        assert [m.sender_type.value for m in orchestrator.messages] == ["user", "assistant"]
        user, reply = orchestrator.messages
        assert user.content == "Is the termination clause fair?"
        assert reply.content == "The termination clause favors the employer."
        assert reply.action_buttons[0].id == "explain_termination"

        assert workflow.payloads[0]["conversation_id"] == str(conversation.id)
        assert workflow.payloads[0]["session_id"] == conversation.session_id
        assert orchestrator.last_request.history == [
            RequestStatus.IDLE,
            RequestStatus.SENDING,
            RequestStatus.SUCCEEDED,
        ]
        assert orchestrator.state.is_typing is False
        assert orchestrator.state.is_processing is False

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self, harness):
        orchestrator, workflow = harness((503, {"error": "busy"}), (503, {"error": "busy"}), OK_ANSWER)

        await orchestrator.new_conversation()
        sent = await orchestrator.send_message("Summarize the NDA")

        assert sent is True
        assert len(workflow.payloads) == 3
        assert harness.sleep.delays == [2.0, 2.0]
        assert orchestrator.last_request.attempts == 3
        assert RequestStatus.RETRYING in orchestrator.last_request.history
        assert [m.sender_type.value for m in orchestrator.messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, harness):
        orchestrator, workflow = harness((503, {"error": "busy"}))

        await orchestrator.new_conversation()
        sent = await orchestrator.send_message("Summarize the NDA")

        assert sent is False
        assert len(workflow.payloads) == 3
        assert orchestrator.notices[-1] == TEXT_RELAY_FAILED
        assert orchestrator.last_request.status == RequestStatus.FAILED
        assert [m.sender_type.value for m in orchestrator.messages] == ["user"]

    @pytest.mark.asyncio
    async def test_upload_round_trip(self, harness, test_db):
        orchestrator, workflow = harness(
            (
                200,
                {
                    "content": "Standard NDA with a 2 year term.",
                    "analysis": {"full_text": "NON-DISCLOSURE AGREEMENT", "content": "Mutual NDA"},
                },
            )
        )

        await orchestrator.new_conversation()
        uploaded = await orchestrator.upload_file(
            UploadCandidate(file_name="nda.pdf", data=b"%PDF-1.7", content_type="application/pdf")
        )

        assert uploaded is True
        assert [m.sender_type.value for m in orchestrator.messages] == ["file", "assistant"]
        file_message = orchestrator.messages[0]
        assert file_message.content == "Uploaded file: nda.pdf"
        assert file_message.file_url.startswith(f"{STORAGE_URL}/object/public/contracts/")

        payload = workflow.payloads[0]
        assert payload["message_type"] == "file_upload"
        assert payload["file_name"] == "nda.pdf"
        assert payload["file_url"] == file_message.file_url

        contracts = (await test_db.execute(select(Contract))).scalars().all()
        assert [c.overview for c in contracts] == ["Mutual NDA"]
        assert orchestrator.state.is_uploading is False
        assert orchestrator.state.upload_progress == 0

    @pytest.mark.asyncio
    async def test_button_round_trip(self, harness):
        orchestrator, workflow = harness(OK_ANSWER)

        await orchestrator.new_conversation()
        clicked = await orchestrator.click_button("explain_termination", "Explain termination")

        assert clicked is True
        assert orchestrator.messages[0].content == "Clicked: Explain termination"
        assert workflow.payloads[0]["button_action"] == "explain_termination"
        assert workflow.payloads[0]["message_content"] == "Explain termination"

    @pytest.mark.asyncio
    async def test_delete_promotes_next_conversation(self, harness):
        orchestrator, _ = harness(OK_ANSWER)

        older = await orchestrator.new_conversation("Lease")
        newer = await orchestrator.new_conversation("NDA")
        await orchestrator.send_message("Hello")

        assert await orchestrator.delete_conversation(newer.id) is True

        assert orchestrator.current_conversation.id == older.id
        assert orchestrator.messages == []
        with pytest.raises(NotFoundError):
            await orchestrator.api.list_messages(newer.id)

    @pytest.mark.asyncio
    async def test_memory_failures_do_not_change_outcome(self, harness):
        memory = MagicMock()
        memory.initialize_session = AsyncMock(side_effect=RuntimeError("memory down"))
        memory.add_memory_message = AsyncMock(side_effect=RuntimeError("memory down"))
        orchestrator, _ = harness(OK_ANSWER, memory=memory)

        await orchestrator.new_conversation()
        sent = await orchestrator.send_message("Is this enforceable?")

        assert sent is True
        assert len(orchestrator.messages) == 2
        assert orchestrator.notices == []
