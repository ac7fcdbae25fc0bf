"""Client-side chat orchestration over the contract analysis API."""

from app.client.api import ContractChatApi
from app.client.orchestrator import ConversationOrchestrator
from app.client.retry import RetryPolicy
from app.client.state import ChatViewState, Notice, PendingRequest, RequestLifecycle, RequestStatus
from app.client.validation import UploadCandidate, validate_upload

__all__ = [
    "ContractChatApi",
    "ConversationOrchestrator",
    "RetryPolicy",
    "ChatViewState",
    "Notice",
    "PendingRequest",
    "RequestLifecycle",
    "RequestStatus",
    "UploadCandidate",
    "validate_upload",
]
