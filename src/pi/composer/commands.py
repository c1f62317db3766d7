"""Logical edit commands shared by every input source.

Terminal keystrokes and remote control batches both reduce to these
values before they reach :class:`pi.composer.engine.BufferEngine`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Union, get_args

Direction = Literal["left", "right"]
VerticalDirection = Literal["up", "down"]


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsertChar:
    label: ClassVar[str] = "insert_char"

    char: str


@dataclass(frozen=True)
class InsertText:
    """Insert a pasted block as a single undo group."""

    label: ClassVar[str] = "insert_text"

    text: str


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeleteLeft:
    label: ClassVar[str] = "delete_left"


@dataclass(frozen=True)
class DeleteRight:
    label: ClassVar[str] = "delete_right"


@dataclass(frozen=True)
class DeleteWordLeft:
    label: ClassVar[str] = "delete_word_left"


@dataclass(frozen=True)
class DeleteWordRight:
    label: ClassVar[str] = "delete_word_right"


# ---------------------------------------------------------------------------
# Kill ring
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KillLineStart:
    label: ClassVar[str] = "kill_line_start"


@dataclass(frozen=True)
class KillLineEnd:
    label: ClassVar[str] = "kill_line_end"


@dataclass(frozen=True)
class KillWrappedLineStart:
    label: ClassVar[str] = "kill_wrapped_line_start"


@dataclass(frozen=True)
class KillWrappedLineEnd:
    label: ClassVar[str] = "kill_wrapped_line_end"


@dataclass(frozen=True)
class KillLine:
    label: ClassVar[str] = "kill_line"


@dataclass(frozen=True)
class Yank:
    label: ClassVar[str] = "yank"


@dataclass(frozen=True)
class YankPop:
    label: ClassVar[str] = "yank_pop"


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MoveChar:
    label: ClassVar[str] = "move_char"

    dir: Direction


@dataclass(frozen=True)
class MoveWord:
    label: ClassVar[str] = "move_word"

    dir: Direction


@dataclass(frozen=True)
class MoveLine:
    label: ClassVar[str] = "move_line"

    dir: VerticalDirection


@dataclass(frozen=True)
class MoveToLineBoundary:
    """``left`` moves to the line start, ``right`` to the line end."""

    label: ClassVar[str] = "move_to_line_boundary"

    dir: Direction


@dataclass(frozen=True)
class MoveToBufferBoundary:
    """``left`` moves to offset 0, ``right`` to the end of the buffer."""

    label: ClassVar[str] = "move_to_buffer_boundary"

    dir: Direction


# ---------------------------------------------------------------------------
# History and direct state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Undo:
    label: ClassVar[str] = "undo"


@dataclass(frozen=True)
class Redo:
    label: ClassVar[str] = "redo"


@dataclass(frozen=True)
class SetBuffer:
    """Replace the whole buffer. ``cursor`` defaults to the end of ``text``."""

    label: ClassVar[str] = "set_buffer"

    text: str
    cursor: int | None = None


@dataclass(frozen=True)
class SetCursor:
    label: ClassVar[str] = "set_cursor"

    offset: int


EditCommand = Union[
    InsertChar,
    InsertText,
    DeleteLeft,
    DeleteRight,
    DeleteWordLeft,
    DeleteWordRight,
    KillLineStart,
    KillLineEnd,
    KillWrappedLineStart,
    KillWrappedLineEnd,
    KillLine,
    Yank,
    YankPop,
    MoveChar,
    MoveWord,
    MoveLine,
    MoveToLineBoundary,
    MoveToBufferBoundary,
    Undo,
    Redo,
    SetBuffer,
    SetCursor,
]

EDIT_COMMAND_TYPES: tuple[type, ...] = get_args(EditCommand)

MOVEMENT_COMMANDS: tuple[type, ...] = (
    MoveChar,
    MoveWord,
    MoveLine,
    MoveToLineBoundary,
    MoveToBufferBoundary,
    SetCursor,
)

def is_edit_command(value: object) -> bool:
    """Return ``True`` if *value* is one of the known edit commands."""
    return isinstance(value, EDIT_COMMAND_TYPES)
