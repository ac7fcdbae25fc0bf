"""Client-side coordination of the chat interactions.

The orchestrator drives the three user-facing flows (text send, file upload,
button click) against the API, keeps the transient view flags and turns
failures into user-facing notices. The relational store stays the source of
truth: after every successful relay call the full message list is re-fetched.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import asdict
from typing import Any
from uuid import UUID

from app.client.api import ContractChatApi
from app.client.retry import RetryPolicy
from app.client.state import (
    INITIAL_VIEW_STATE,
    ChatViewState,
    Notice,
    NoticeVariant,
    PendingRequest,
    RequestLifecycle,
)
from app.client.validation import UploadCandidate, validate_upload
from app.exceptions.base import ValidationError
from app.schemas.analysis import AnalysisRequest, MessageType
from app.schemas.conversation import ConversationResponse
from app.schemas.memory import create_memory_message
from app.schemas.message import MessageResponse
from app.services.memory_client import MemoryClient

logger = logging.getLogger(__name__)

AUTO_SCROLL_THRESHOLD = 100

NO_CONVERSATION = Notice(
    "No conversation", "Please create a new conversation first", NoticeVariant.DESTRUCTIVE
)
SEND_FAILED = Notice("Error", "Failed to send message", NoticeVariant.DESTRUCTIVE)
TEXT_RELAY_FAILED = Notice(
    "AI Processing Error",
    "Failed to process your message after multiple attempts. Please try again.",
    NoticeVariant.DESTRUCTIVE,
)
BUTTON_RELAY_FAILED = Notice(
    "Processing Error",
    "Failed to process your request after multiple attempts. Please try again.",
    NoticeVariant.DESTRUCTIVE,
)

StateListener = Callable[[ChatViewState], None]


class ConversationOrchestrator:
    """Coordinates conversations, messages and relay calls for one chat view."""

    def __init__(
        self,
        api: ContractChatApi,
        memory: MemoryClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.api = api
        self.memory = memory
        self.retry_policy = retry_policy or RetryPolicy()

        self.state: ChatViewState = INITIAL_VIEW_STATE
        self.conversations: list[ConversationResponse] = []
        self.current_conversation: ConversationResponse | None = None
        self.messages: list[MessageResponse] = []
        self.notices: list[Notice] = []
        self.requests: list[RequestLifecycle] = []

        self._listeners: list[StateListener] = []
        self._pending: set[PendingRequest] = set()

    # State and notices

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for view state snapshots. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes: Any) -> None:
        new_state = self.state.update(**changes)
        if new_state == self.state:
            return
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    def _reset_view(self) -> None:
        self._set_state(**asdict(INITIAL_VIEW_STATE))

    def _notify(self, notice: Notice) -> None:
        logger.info(f"Notice: {notice.title} - {notice.description}")
        self.notices.append(notice)

    @property
    def last_request(self) -> RequestLifecycle | None:
        return self.requests[-1] if self.requests else None

    def on_scroll(self, scroll_top: float, client_height: float, scroll_height: float) -> bool:
        """Follow new content only while the viewport is near the bottom."""
        near_bottom = scroll_top + client_height >= scroll_height - AUTO_SCROLL_THRESHOLD
        self._set_state(should_auto_scroll=near_bottom)
        return near_bottom

    # Conversations

    async def load_conversations(self) -> list[ConversationResponse]:
        try:
            conversations = await self.api.list_conversations()
        except Exception as e:
            logger.error(f"Error fetching conversations: {str(e)}")
            self._notify(Notice("Error", "Failed to load conversations", NoticeVariant.DESTRUCTIVE))
            return self.conversations

        self.conversations = sorted(conversations, key=lambda c: c.updated_at, reverse=True)
        return self.conversations

    async def new_conversation(self, title: str | None = None) -> ConversationResponse | None:
        """Create a conversation, make it current and open its memory session."""
        try:
            conversation = await self.api.create_conversation(title)
        except Exception as e:
            logger.error(f"Error creating conversation: {str(e)}")
            self._notify(
                Notice(
                    "Failed to Create Conversation",
                    "Unable to start a new conversation. Please try again.",
                    NoticeVariant.DESTRUCTIVE,
                )
            )
            return None

        self.conversations.insert(0, conversation)
        if self.memory is not None:
            try:
                await self.memory.initialize_session(conversation.session_id)
            except Exception as e:
                logger.warning(f"Memory session setup failed for {conversation.session_id}: {str(e)}")

        await self.set_current_conversation(conversation)
        self._set_state(should_auto_scroll=True)
        return conversation

    async def rename_conversation(self, conversation_id: UUID, title: str) -> bool:
        try:
            renamed = await self.api.rename_conversation(conversation_id, title)
        except Exception as e:
            logger.error(f"Error updating conversation title: {str(e)}")
            self._notify(
                Notice("Error", "Failed to update conversation title", NoticeVariant.DESTRUCTIVE)
            )
            return False

        self.conversations = [renamed if c.id == conversation_id else c for c in self.conversations]
        if self.current_conversation and self.current_conversation.id == conversation_id:
            self.current_conversation = renamed
        return True

    async def delete_conversation(self, conversation_id: UUID) -> bool:
        """Delete a conversation; if it was current, promote the next most recent one."""
        try:
            await self.api.delete_conversation(conversation_id)
        except Exception as e:
            logger.error(f"Error deleting conversation: {str(e)}")
            self._notify(Notice("Error", "Failed to delete conversation", NoticeVariant.DESTRUCTIVE))
            return False

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.current_conversation and self.current_conversation.id == conversation_id:
            await self.set_current_conversation(self.conversations[0] if self.conversations else None)
        return True

    async def set_current_conversation(self, conversation: ConversationResponse | None) -> None:
        """Switch conversations. Clearing the selection resets every transient flag."""
        self.current_conversation = conversation
        if conversation is None:
            self.messages = []
            self._reset_view()
            return
        await self.refresh_messages()

    async def refresh_messages(self) -> list[MessageResponse]:
        conversation = self.current_conversation
        if conversation is None:
            self.messages = []
            return self.messages

        try:
            messages = await self.api.list_messages(conversation.id)
        except Exception as e:
            logger.error(f"Error fetching messages: {str(e)}")
            self._notify(Notice("Error", "Failed to load messages", NoticeVariant.DESTRUCTIVE))
            return self.messages

        # The selection may have changed while the request was in flight
        if self.current_conversation is not None and self.current_conversation.id == conversation.id:
            self.messages = messages
        return self.messages

    # Interactions

    async def send_message(self, text: str) -> bool:
        """Persist a user message, then relay it with retries."""
        conversation = self.current_conversation
        if conversation is None:
            self._notify(NO_CONVERSATION)
            return False
        content = text.strip()
        if not content:
            return False

        self._set_state(is_processing=True)
        try:
            try:
                await self.api.create_user_message(conversation.id, content)
            except Exception as e:
                logger.error(f"Error saving user message: {str(e)}")
                self._notify(SEND_FAILED)
                return False

            await self.refresh_messages()
            self._set_state(is_typing=True)
            await self._remember(conversation, "user", content, MessageType.TEXT_MESSAGE)

            request = AnalysisRequest(
                conversation_id=conversation.id,
                session_id=conversation.session_id,
                message_content=content,
                message_type=MessageType.TEXT_MESSAGE,
            )
            return await self._relay(conversation, request, TEXT_RELAY_FAILED)
        finally:
            self._set_state(is_typing=False, is_processing=False)

    async def upload_file(self, candidate: UploadCandidate) -> bool:
        """Validate, store and register a file, then relay it for analysis."""
        try:
            validate_upload(candidate)
        except ValidationError as e:
            title = "File too large" if e.details.get("reason") == "too_large" else "Invalid file type"
            self._notify(Notice(title, e.message, NoticeVariant.DESTRUCTIVE))
            return False

        conversation = self.current_conversation
        if conversation is None:
            self._notify(NO_CONVERSATION)
            return False

        self._set_state(is_uploading=True, upload_progress=0)
        try:
            stored = await self.api.upload_file(
                candidate.file_name, candidate.data, candidate.content_type
            )
            self._set_state(upload_progress=100)
            await self.api.create_file_message(conversation.id, candidate.file_name, stored.file_url)
        except Exception as e:
            logger.error(f"Error uploading {candidate.file_name}: {str(e)}")
            self._notify(
                Notice(
                    "Upload failed",
                    f"Failed to upload {candidate.file_name}. Please try again.",
                    NoticeVariant.DESTRUCTIVE,
                )
            )
            self._set_state(is_typing=False, is_uploading=False, upload_progress=0)
            return False
        except asyncio.CancelledError:
            self._set_state(is_uploading=False, upload_progress=0)
            raise

        self._notify(Notice("Upload successful", "Analyzing document..."))
        await self.refresh_messages()
        self._set_state(is_typing=True, is_uploading=False, upload_progress=0)

        try:
            content = f"Contract uploaded: {candidate.file_name}"
            await self._remember(conversation, "user", content, MessageType.FILE_UPLOAD)
            request = AnalysisRequest(
                conversation_id=conversation.id,
                session_id=conversation.session_id,
                message_content=content,
                message_type=MessageType.FILE_UPLOAD,
                file_url=stored.file_url,
                file_name=candidate.file_name,
            )
            failure = Notice(
                "Analysis Error",
                f"Failed to analyze {candidate.file_name} after multiple attempts. Please try again.",
                NoticeVariant.DESTRUCTIVE,
            )
            return await self._relay(conversation, request, failure)
        finally:
            self._set_state(is_typing=False)

    async def click_button(self, button_id: str, label: str) -> bool:
        """Record the click as a user message, then relay the button action."""
        conversation = self.current_conversation
        if conversation is None:
            self._notify(NO_CONVERSATION)
            return False

        content = f"Clicked: {label}"
        try:
            await self.api.create_user_message(conversation.id, content)
        except Exception as e:
            logger.error(f"Error saving button click: {str(e)}")
            self._notify(Notice("Error", "Failed to save message", NoticeVariant.DESTRUCTIVE))
            return False

        await self.refresh_messages()
        self._set_state(is_typing=True)
        try:
            await self._remember(conversation, "user", content, MessageType.BUTTON_ACTION)
            request = AnalysisRequest(
                conversation_id=conversation.id,
                session_id=conversation.session_id,
                message_content=label,
                message_type=MessageType.BUTTON_ACTION,
                button_action=button_id,
            )
            return await self._relay(conversation, request, BUTTON_RELAY_FAILED)
        finally:
            self._set_state(is_typing=False)

    # Cancellation

    def start(self, flow: Coroutine[Any, Any, Any]) -> PendingRequest:
        """Run a flow as a cancellable task, e.g. ``start(orchestrator.send_message("hi"))``."""
        pending = PendingRequest(asyncio.create_task(flow), on_done=self._pending.discard)
        self._pending.add(pending)
        return pending

    def cancel_pending(self) -> int:
        """Cancel local work of every running flow. Server-side work still completes."""
        cancelled = 0
        for pending in list(self._pending):
            if pending.cancel():
                cancelled += 1
        return cancelled

    # Private helper methods

    async def _relay(
        self, conversation: ConversationResponse, request: AnalysisRequest, failure: Notice
    ) -> bool:
        lifecycle = RequestLifecycle(kind=request.message_type.value)
        self.requests.append(lifecycle)

        try:
            await self.retry_policy.run(
                lambda: self.api.analyze(request),
                on_attempt=lambda _attempt: lifecycle.start_attempt(),
            )
        except asyncio.CancelledError:
            if not lifecycle.settled:
                lifecycle.fail()
            raise
        except Exception as e:
            logger.error(
                f"Relay {request.message_type.value} failed after {lifecycle.attempts} attempts: {str(e)}"
            )
            lifecycle.fail(e)
            self._notify(failure)
            return False

        lifecycle.succeed()
        if self.current_conversation is not None and self.current_conversation.id == conversation.id:
            await self.refresh_messages()
        return True

    async def _remember(
        self,
        conversation: ConversationResponse,
        role: str,
        content: str,
        message_type: MessageType,
    ) -> None:
        if self.memory is None:
            return
        message = create_memory_message(
            role, content, {"message_type": message_type.value, "conversation_id": str(conversation.id)}
        )
        try:
            await self.memory.add_memory_message(conversation.session_id, message)
        except Exception as e:
            logger.warning(f"Memory update failed for {conversation.session_id}: {str(e)}")
