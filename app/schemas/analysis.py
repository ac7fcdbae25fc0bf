"""Analysis relay schemas for request/response serialization."""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import Field, model_validator

from .base import BaseSchema


class MessageType(str, Enum):
    """Kind of interaction forwarded to the workflow engine."""

    TEXT_MESSAGE = "text_message"
    FILE_UPLOAD = "file_upload"
    BUTTON_ACTION = "button_action"


# metadata.message_type recorded on the assistant reply
RESPONSE_KIND_BY_MESSAGE_TYPE = {
    MessageType.TEXT_MESSAGE: "text_response",
    MessageType.FILE_UPLOAD: "file_analysis",
    MessageType.BUTTON_ACTION: "button_response",
}


class AnalysisRequest(BaseSchema):
    """Inbound request to the contract analysis relay."""

    conversation_id: UUID | None = Field(None, description="Conversation the reply belongs to")
    session_id: str | None = Field(None, description="Memory session id, defaults to conversation id")
    message_content: str | None = Field(None, max_length=20000, description="User text")
    message_type: MessageType = Field(..., description="Which payload this request carries")
    file_url: str | None = Field(None, description="URL of an uploaded file")
    file_name: str | None = Field(None, description="Original name of an uploaded file")
    button_action: str | None = Field(None, description="Identifier of a clicked action button")

    @model_validator(mode="after")
    def check_payload(self):
        if self.message_type == MessageType.FILE_UPLOAD:
            if not (self.file_name and self.file_url):
                raise ValueError("file_upload requests need file_name and file_url")
        elif self.message_type == MessageType.BUTTON_ACTION:
            if not self.button_action:
                raise ValueError("button_action requests need button_action")
        elif not (self.message_content and self.message_content.strip()):
            raise ValueError("text_message requests need message_content")
        return self


class AnalysisResponse(BaseSchema):
    """Successful relay outcome."""

    success: bool = True
    analysis: Any | None = Field(None, description="Structured result from the workflow engine")
    message: str = "Workflow completed successfully"


class AnalysisErrorResponse(BaseSchema):
    """Failed relay outcome."""

    success: bool = False
    error: str
    error_code: str


class ConversationalRequest(BaseSchema):
    """Inbound request to the built-in conversational responder."""

    conversation_id: UUID
    message_content: str = Field(..., min_length=1, max_length=20000)
    zep_session_id: str | None = None
