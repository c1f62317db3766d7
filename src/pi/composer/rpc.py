"""Wire types for the file-based control channel.

A request holds an ordered list of commands. The request envelope is
validated as a whole, but each command is validated on its own so a single
bad entry does not sink the batch.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

RESPONSE_VERSION = 1

ResponseStatus = Literal["ok", "no_request", "error"]


class RequestParseError(ValueError):
    """The request artifact is not a JSON object with a ``commands`` list."""


# --- Commands ---


class _RpcCommandBase(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


class SetBufferCommand(_RpcCommandBase):
    """Replace the whole buffer; ``cursor`` is a UTF-8 byte offset."""

    type: Literal["set_buffer"] = "set_buffer"
    text: str
    cursor: int | None = Field(default=None, ge=0)


class SetCursorCommand(_RpcCommandBase):
    type: Literal["set_cursor"] = "set_cursor"
    cursor: int = Field(ge=0)


class GetStateCommand(_RpcCommandBase):
    type: Literal["get_state"] = "get_state"


class NotifyCommand(_RpcCommandBase):
    type: Literal["notify"] = "notify"
    message: str


class HistoryPreviousCommand(_RpcCommandBase):
    type: Literal["history_previous"] = "history_previous"


class HistoryNextCommand(_RpcCommandBase):
    type: Literal["history_next"] = "history_next"


class EditPreviousMessageCommand(_RpcCommandBase):
    type: Literal["edit_previous_message"] = "edit_previous_message"
    steps_back: int = Field(default=0, ge=0)


RpcCommand = Annotated[
    Union[
        SetBufferCommand,
        SetCursorCommand,
        GetStateCommand,
        NotifyCommand,
        HistoryPreviousCommand,
        HistoryNextCommand,
        EditPreviousMessageCommand,
    ],
    Field(discriminator="type"),
]

_COMMAND_ADAPTER: TypeAdapter[RpcCommand] = TypeAdapter(RpcCommand)

KNOWN_COMMAND_TYPES: frozenset[str] = frozenset(
    {
        "set_buffer",
        "set_cursor",
        "get_state",
        "notify",
        "history_previous",
        "history_next",
        "edit_previous_message",
    }
)


class RpcRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    commands: list[Any] = Field(default_factory=list)


def parse_request(raw: str | bytes) -> RpcRequest:
    """Parse the request envelope. Commands stay raw until :func:`parse_command`."""
    try:
        return RpcRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise RequestParseError(f"invalid request: {exc.error_count()} validation error(s)") from exc


def parse_command(raw: Any) -> RpcCommand:
    """Validate one raw command. Raises ``ValidationError`` when malformed."""
    return _COMMAND_ADAPTER.validate_python(raw)


def command_type(raw: Any) -> str | None:
    if isinstance(raw, dict):
        value = raw.get("type")
        return value if isinstance(value, str) else None
    return None


# --- Response ---


class EditorState(BaseModel):
    buffer: str
    cursor: int
    is_task_running: bool = False
    task_summary: str | None = None


class RpcResponse(BaseModel):
    version: int = RESPONSE_VERSION
    status: ResponseStatus = "ok"
    state: EditorState
    applied: list[str] = Field(default_factory=list)
    error: str | None = None
    timestamp_ms: int
