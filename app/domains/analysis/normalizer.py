"""Normalization of workflow engine responses.

The workflow engine answers with whatever its last node produced: an array of
items, a single object, plain text or nothing at all. ``normalize`` resolves
that body into one ``NormalizedResponse`` through a fixed, ordered set of
shapes and field priorities. It performs no I/O.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.exceptions.pipeline import UpstreamResponseError
from app.schemas.message import ActionButton

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_TEXT = (
    "I received your message but got an empty response from the processing system. "
    "Please try again."
)

# First field that is set and not an empty string wins
TEXT_FIELDS = ("output", "content", "response", "message", "text")
ACTION_FIELDS = ("action_buttons", "actions")
ANALYSIS_FIELD = "analysis"


class ResponseShape(str, Enum):
    """Which body shape the response was resolved as."""

    EMPTY = "empty"
    TEXT = "text"
    ARRAY = "array"
    OBJECT = "object"


@dataclass
class NormalizedResponse:
    """Text, suggested actions and structured result of one workflow call."""

    shape: ResponseShape
    text: str
    actions: list[ActionButton] = field(default_factory=list)
    structured_result: Any | None = None

    def actions_as_dicts(self) -> list[dict[str, Any]]:
        return [action.model_dump(mode="json", exclude_none=True) for action in self.actions]


def normalize(raw_body: str | bytes | None) -> NormalizedResponse:
    """Resolve a raw workflow response body.

    Args:
        raw_body: Response body exactly as received.

    Returns:
        NormalizedResponse for the resolved shape.

    Raises:
        UpstreamResponseError: If the body is valid JSON but yields no text.
    """
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")

    if raw_body is None or not raw_body.strip():
        return NormalizedResponse(shape=ResponseShape.EMPTY, text=EMPTY_RESPONSE_TEXT)

    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        logger.info("Workflow response is not JSON, using raw text")
        return NormalizedResponse(shape=ResponseShape.TEXT, text=raw_body)

    if isinstance(parsed, list):
        if not parsed or not isinstance(parsed[0], dict):
            raise UpstreamResponseError(
                "Workflow returned an array without an object to read",
                details={"shape": ResponseShape.ARRAY.value},
            )
        return _from_item(parsed[0], ResponseShape.ARRAY)

    if isinstance(parsed, dict):
        return _from_item(parsed, ResponseShape.OBJECT)

    raise UpstreamResponseError(
        "Workflow returned a JSON value without response content",
        details={"shape": type(parsed).__name__},
    )


def _from_item(item: dict[str, Any], shape: ResponseShape) -> NormalizedResponse:
    text = _first_present(item, TEXT_FIELDS)
    if text is None:
        logger.error(f"No response content found in workflow item with keys {sorted(item)}")
        raise UpstreamResponseError(
            "No response content from workflow engine",
            details={"shape": shape.value, "keys": sorted(item)},
        )
    if not isinstance(text, str):
        text = json.dumps(text)

    structured = item.get(ANALYSIS_FIELD) or item
    return NormalizedResponse(
        shape=shape,
        text=text,
        actions=extract_actions(_first_present(item, ACTION_FIELDS)),
        structured_result=structured,
    )


def _first_present(item: dict[str, Any], fields: tuple[str, ...]) -> Any | None:
    for name in fields:
        value = item.get(name)
        if value is not None and value != "":
            return value
    return None


def extract_actions(raw_actions: Any) -> list[ActionButton]:
    """Validate suggested actions, dropping entries that are not usable buttons."""
    if isinstance(raw_actions, str):
        try:
            raw_actions = json.loads(raw_actions)
        except json.JSONDecodeError:
            return []
    if not isinstance(raw_actions, list):
        return []

    actions = []
    for raw in raw_actions:
        try:
            actions.append(ActionButton.model_validate(raw))
        except PydanticValidationError:
            logger.warning(f"Dropping malformed action button: {raw!r}")
    return actions
