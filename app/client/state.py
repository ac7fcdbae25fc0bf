"""View state and request lifecycle tracked by the conversation orchestrator."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatViewState:
    """Transient flags of the chat view."""

    is_typing: bool = False
    is_processing: bool = False
    is_uploading: bool = False
    upload_progress: int = 0
    should_auto_scroll: bool = True

    def update(self, **changes: Any) -> "ChatViewState":
        return replace(self, **changes)


INITIAL_VIEW_STATE = ChatViewState()


class NoticeVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notice:
    """User-facing notification. Never carries raw error detail."""

    title: str
    description: str
    variant: NoticeVariant = NoticeVariant.DEFAULT


class RequestStatus(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    RequestStatus.IDLE: {RequestStatus.SENDING, RequestStatus.FAILED},
    RequestStatus.SENDING: {RequestStatus.RETRYING, RequestStatus.SUCCEEDED, RequestStatus.FAILED},
    RequestStatus.RETRYING: {RequestStatus.RETRYING, RequestStatus.SUCCEEDED, RequestStatus.FAILED},
    RequestStatus.SUCCEEDED: set(),
    RequestStatus.FAILED: set(),
}


@dataclass
class RequestLifecycle:
    """State machine of one relay request.

    ``idle -> sending -> (retrying)* -> succeeded | failed``
    """

    kind: str
    status: RequestStatus = RequestStatus.IDLE
    attempts: int = 0
    history: list[RequestStatus] = field(default_factory=lambda: [RequestStatus.IDLE])
    error: BaseException | None = None

    @property
    def settled(self) -> bool:
        return self.status in (RequestStatus.SUCCEEDED, RequestStatus.FAILED)

    def _transition(self, status: RequestStatus) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise RuntimeError(f"Invalid request transition {self.status.value} -> {status.value}")
        self.status = status
        self.history.append(status)

    def start_attempt(self) -> None:
        """Record an attempt, moving to sending on the first and retrying after."""
        self.attempts += 1
        self._transition(RequestStatus.SENDING if self.attempts == 1 else RequestStatus.RETRYING)

    def succeed(self) -> None:
        self._transition(RequestStatus.SUCCEEDED)

    def fail(self, error: BaseException | None = None) -> None:
        self.error = error
        self._transition(RequestStatus.FAILED)


class PendingRequest:
    """Handle on an orchestrator flow running as an asyncio task.

    Cancelling only stops local work. A relay call already sent still
    completes on the server and persists its result.
    """

    def __init__(self, task: asyncio.Task, on_done: Callable[["PendingRequest"], None] | None = None):
        self.task = task
        if on_done is not None:
            task.add_done_callback(lambda _task: on_done(self))

    def cancel(self) -> bool:
        return self.task.cancel()

    @property
    def done(self) -> bool:
        return self.task.done()

    @property
    def cancelled(self) -> bool:
        return self.task.cancelled()

    async def result(self) -> Any:
        return await self.task
