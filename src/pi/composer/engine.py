"""Single owner of the composer buffer, cursor, undo history and kill ring.

Every input source reduces its input to :mod:`pi.composer.commands` values
and hands them to :meth:`BufferEngine.apply`, which is the only place the
buffer is mutated. Offsets are code-point indices into the text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from pi.composer.commands import (
    MOVEMENT_COMMANDS,
    DeleteLeft,
    DeleteRight,
    DeleteWordLeft,
    DeleteWordRight,
    EditCommand,
    InsertChar,
    InsertText,
    KillLine,
    KillLineEnd,
    KillLineStart,
    KillWrappedLineEnd,
    KillWrappedLineStart,
    MoveChar,
    MoveLine,
    MoveToBufferBoundary,
    MoveToLineBoundary,
    MoveWord,
    Redo,
    SetBuffer,
    SetCursor,
    Undo,
    Yank,
    YankPop,
    is_edit_command,
)
from pi.composer.kill_ring import DEFAULT_KILL_RING_SIZE, KillRing
from pi.composer.undo import UndoEntry, UndoHistory, UndoKind
from pi.composer.utils import (
    clean_text,
    find_word_end,
    find_word_start,
    line_end,
    line_start,
    wrapped_line_bounds,
)

logger = logging.getLogger(__name__)

DEFAULT_WRAP_WIDTH = 80


class CommandRejected(ValueError):
    """Raised when something other than an edit command is applied."""


@dataclass(frozen=True)
class BufferState:
    text: str = ""
    cursor: int = 0


@dataclass(frozen=True)
class StateDelta:
    """Outcome of one applied command."""

    command: EditCommand
    before: BufferState
    after: BufferState

    @property
    def changed(self) -> bool:
        return self.before != self.after


class BufferEngine:
    """Applies edit commands atomically to one buffer.

    Boundary operations (deleting or moving past an edge, undo/redo with an
    empty stack) are no-ops and return an unchanged :class:`StateDelta`.
    """

    def __init__(
        self,
        text: str = "",
        *,
        cursor: int | None = None,
        kill_ring_size: int = DEFAULT_KILL_RING_SIZE,
        wrap_width: int = DEFAULT_WRAP_WIDTH,
    ) -> None:
        self._text = clean_text(text)
        self._cursor = self._clamp(len(text) if cursor is None else cursor)
        self._undo = UndoHistory()
        self._kill_ring = KillRing(kill_ring_size)
        self.wrap_width = wrap_width

        # Sticky column for consecutive vertical moves
        self._preferred_col: int | None = None
        # (start, end) of the text inserted by the last yank / yank-pop
        self._last_yank: tuple[int, int] | None = None

        self.on_change: Callable[[BufferState], None] | None = None

        self._handlers: dict[type, Callable[..., None]] = {
            InsertChar: self._insert_char,
            InsertText: self._insert_text,
            DeleteLeft: self._delete_left,
            DeleteRight: self._delete_right,
            DeleteWordLeft: self._delete_word_left,
            DeleteWordRight: self._delete_word_right,
            KillLineStart: self._kill_line_start,
            KillLineEnd: self._kill_line_end,
            KillWrappedLineStart: self._kill_wrapped_line_start,
            KillWrappedLineEnd: self._kill_wrapped_line_end,
            KillLine: self._kill_line,
            Yank: self._yank,
            YankPop: self._yank_pop,
            MoveChar: self._move_char,
            MoveWord: self._move_word,
            MoveLine: self._move_line,
            MoveToLineBoundary: self._move_to_line_boundary,
            MoveToBufferBoundary: self._move_to_buffer_boundary,
            Undo: self._apply_undo,
            Redo: self._apply_redo,
            SetBuffer: self._set_buffer,
            SetCursor: self._set_cursor,
        }

    # -- Accessors -----------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def kill_ring(self) -> KillRing:
        return self._kill_ring

    @property
    def can_undo(self) -> bool:
        return self._undo.can_undo

    @property
    def can_redo(self) -> bool:
        return self._undo.can_redo

    @property
    def undo_depth(self) -> int:
        return self._undo.length

    def snapshot(self) -> BufferState:
        return BufferState(text=self._text, cursor=self._cursor)

    # -- Command application -------------------------------------------------

    def apply(self, command: EditCommand) -> StateDelta:
        """Apply one command and return the before/after states."""
        if not is_edit_command(command):
            raise CommandRejected(f"not an edit command: {command!r}")

        before = self.snapshot()
        self._handlers[type(command)](command)

        if not isinstance(command, MoveLine):
            self._preferred_col = None
        if not isinstance(command, (Yank, YankPop)):
            self._last_yank = None
        if isinstance(command, MOVEMENT_COMMANDS):
            self._undo.seal()

        delta = StateDelta(command=command, before=before, after=self.snapshot())
        if delta.changed and self.on_change:
            try:
                self.on_change(delta.after)
            except Exception:
                logger.exception("Buffer change callback failed")
        return delta

    def reset(self, text: str = "") -> None:
        """Replace the buffer and forget undo history (used after submit)."""
        self._text = clean_text(text)
        self._cursor = len(text)
        self._undo.clear()
        self._preferred_col = None
        self._last_yank = None

    # -- Internal helpers ----------------------------------------------------

    def _clamp(self, offset: int) -> int:
        return max(0, min(offset, len(self._text)))

    def _replace(self, start: int, end: int, inserted: str, kind: UndoKind, cursor_after: int) -> None:
        removed = self._text[start:end]
        if not removed and not inserted:
            return
        entry = UndoEntry(
            kind=kind,
            start=start,
            removed=removed,
            inserted=inserted,
            cursor_before=self._cursor,
            cursor_after=cursor_after,
        )
        self._text = self._text[:start] + inserted + self._text[end:]
        self._cursor = cursor_after
        self._undo.record(entry)

    def _kill(self, start: int, end: int, cursor_after: int | None = None) -> None:
        if start >= end:
            return
        self._kill_ring.push(self._text[start:end])
        self._replace(start, end, "", "kill", start if cursor_after is None else cursor_after)

    # -- Insertion -----------------------------------------------------------

    def _insert_char(self, command: InsertChar) -> None:
        if not command.char:
            return
        char = clean_text(command.char)
        c = self._cursor
        self._replace(c, c, char, "insert", c + len(char))

    def _insert_text(self, command: InsertText) -> None:
        text = clean_text(command.text).replace("\r\n", "\n").replace("\r", "\n")
        c = self._cursor
        self._replace(c, c, text, "paste", c + len(text))

    # -- Deletion ------------------------------------------------------------

    def _delete_left(self, _command: DeleteLeft) -> None:
        c = self._cursor
        if c > 0:
            self._replace(c - 1, c, "", "delete_left", c - 1)

    def _delete_right(self, _command: DeleteRight) -> None:
        c = self._cursor
        if c < len(self._text):
            self._replace(c, c + 1, "", "delete_right", c)

    def _delete_word_left(self, _command: DeleteWordLeft) -> None:
        c = self._cursor
        start = find_word_start(self._text, c)
        if start < c:
            self._kill(start, c)

    def _delete_word_right(self, _command: DeleteWordRight) -> None:
        c = self._cursor
        end = find_word_end(self._text, c)
        if end > c:
            self._kill(c, end)

    # -- Kills ---------------------------------------------------------------

    def _kill_line_start(self, _command: object) -> None:
        c = self._cursor
        start = line_start(self._text, c)
        if start == c:
            # At a line start: join with the previous line
            if c > 0:
                self._kill(c - 1, c)
            return
        self._kill(start, c)

    def _kill_line_end(self, _command: object) -> None:
        c = self._cursor
        end = line_end(self._text, c)
        if end == c:
            if c < len(self._text):
                self._kill(c, c + 1)
            return
        self._kill(c, end)

    def _kill_wrapped_line_start(self, _command: KillWrappedLineStart) -> None:
        c = self._cursor
        start, _ = wrapped_line_bounds(self._text, c, self.wrap_width)
        if start < c:
            self._kill(start, c)
        elif c == line_start(self._text, c):
            self._kill_line_start(_command)
        else:
            # On a wrap point: take the previous visual line
            start, _ = wrapped_line_bounds(self._text, c - 1, self.wrap_width)
            self._kill(start, c)

    def _kill_wrapped_line_end(self, _command: KillWrappedLineEnd) -> None:
        c = self._cursor
        _, end = wrapped_line_bounds(self._text, c, self.wrap_width)
        if end > c:
            self._kill(c, end)
        else:
            self._kill_line_end(_command)

    def _kill_line(self, _command: KillLine) -> None:
        c = self._cursor
        start = line_start(self._text, c)
        end = line_end(self._text, c)
        if end < len(self._text):
            self._kill(start, end + 1, start)
        elif start > 0:
            # Last line: take the newline that precedes it
            self._kill(start - 1, end, line_start(self._text, start - 1))
        else:
            self._kill(start, end, 0)

    def _yank(self, _command: Yank) -> None:
        text = self._kill_ring.peek()
        if text is None:
            return
        c = self._cursor
        self._replace(c, c, text, "yank", c + len(text))
        self._last_yank = (c, c + len(text))

    def _yank_pop(self, _command: YankPop) -> None:
        if self._last_yank is None or self._kill_ring.length <= 1:
            return
        start, end = self._last_yank
        self._kill_ring.rotate()
        text = self._kill_ring.peek() or ""
        self._replace(start, end, text, "yank", start + len(text))
        self._last_yank = (start, start + len(text))

    # -- Movement ------------------------------------------------------------

    def _move_char(self, command: MoveChar) -> None:
        step = -1 if command.dir == "left" else 1
        self._cursor = self._clamp(self._cursor + step)

    def _move_word(self, command: MoveWord) -> None:
        if command.dir == "left":
            self._cursor = find_word_start(self._text, self._cursor)
        else:
            self._cursor = find_word_end(self._text, self._cursor)

    def _move_line(self, command: MoveLine) -> None:
        text = self._text
        start = line_start(text, self._cursor)
        col = self._preferred_col if self._preferred_col is not None else self._cursor - start

        if command.dir == "up":
            if start == 0:
                return
            target_start = line_start(text, start - 1)
            target_end = start - 1
        else:
            end = line_end(text, self._cursor)
            if end == len(text):
                return
            target_start = end + 1
            target_end = line_end(text, target_start)

        self._cursor = min(target_start + col, target_end)
        self._preferred_col = col

    def _move_to_line_boundary(self, command: MoveToLineBoundary) -> None:
        if command.dir == "left":
            self._cursor = line_start(self._text, self._cursor)
        else:
            self._cursor = line_end(self._text, self._cursor)

    def _move_to_buffer_boundary(self, command: MoveToBufferBoundary) -> None:
        self._cursor = 0 if command.dir == "left" else len(self._text)

    # -- History and direct state --------------------------------------------

    def _apply_undo(self, _command: Undo) -> None:
        entry = self._undo.undo()
        if entry is None:
            return
        self._text = entry.revert(self._text)
        self._cursor = entry.cursor_before

    def _apply_redo(self, _command: Redo) -> None:
        entry = self._undo.redo()
        if entry is None:
            return
        self._text = entry.reapply(self._text)
        self._cursor = entry.cursor_after

    def _set_buffer(self, command: SetBuffer) -> None:
        text = clean_text(command.text)
        cursor = len(text) if command.cursor is None else max(0, min(command.cursor, len(text)))
        if text == self._text:
            self._cursor = cursor
            self._undo.seal()
            return
        self._replace(0, len(self._text), text, "replace", cursor)

    def _set_cursor(self, command: SetCursor) -> None:
        self._cursor = self._clamp(command.offset)
