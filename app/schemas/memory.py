"""Memory schemas shared by the memory relay and the memory client."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import Field

from .base import BaseSchema


class MemoryAction(str, Enum):
    """Operations understood by the memory relay."""

    INITIALIZE_SESSION = "initialize-session"
    ADD_MEMORY = "add-memory"
    GET_MEMORY = "get-memory"
    SEARCH_MEMORY = "search-memory"
    STORE_CONTEXT = "store-context"


class MemoryMessage(BaseSchema):
    """A role-tagged entry in a memory session."""

    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ContractContext(BaseSchema):
    """Structured contract facts kept alongside the memory log."""

    contract_id: str
    file_name: str
    file_url: str
    extracted_terms: Any | None = None
    analysis_summary: str | None = None
    key_findings: list[str] | None = None
    uploaded_at: str


class MemoryRequest(BaseSchema):
    """Body of a memory relay call."""

    action: MemoryAction
    session_id: str = Field(..., min_length=1)
    message: MemoryMessage | None = None
    context: dict[str, Any] | None = None
    query: str | None = None
    limit: int = Field(default=50, ge=1, le=500)


def create_memory_message(
    role: Literal["user", "assistant"], content: str, metadata: dict[str, Any] | None = None
) -> MemoryMessage:
    """Build a timestamped memory message."""
    return MemoryMessage(
        role=role,
        content=content,
        timestamp=datetime.now(UTC).isoformat(),
        metadata=metadata or {},
    )


def create_contract_context(
    contract_id: str,
    file_name: str,
    file_url: str,
    extracted_terms: Any | None = None,
    analysis_summary: str | None = None,
) -> ContractContext:
    """Build the context stored after a contract is analyzed."""
    return ContractContext(
        contract_id=contract_id,
        file_name=file_name,
        file_url=file_url,
        extracted_terms=extracted_terms,
        analysis_summary=analysis_summary,
        uploaded_at=datetime.now(UTC).isoformat(),
    )


def format_memory_for_ai(messages: list[MemoryMessage]) -> str:
    """Flatten memory into ``role: content`` lines for prompting."""
    return "\n".join(f"{msg.role}: {msg.content}" for msg in messages)
