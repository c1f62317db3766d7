"""Undo/redo history built from reversible replace deltas.

Each entry records what was removed and inserted at one offset, so undoing
and redoing are exact inverses of each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

UndoKind = Literal[
    "insert",
    "delete_left",
    "delete_right",
    "kill",
    "yank",
    "paste",
    "replace",
]

_COALESCING_KINDS: frozenset[str] = frozenset(
    {"insert", "delete_left", "delete_right"}
)


@dataclass
class UndoEntry:
    """One undo group: ``removed`` was replaced by ``inserted`` at ``start``."""

    kind: UndoKind
    start: int
    removed: str
    inserted: str
    cursor_before: int
    cursor_after: int

    def can_merge(self, other: UndoEntry) -> bool:
        """Check whether *other* continues this group at an adjacent offset."""
        if other.kind != self.kind or self.kind not in _COALESCING_KINDS:
            return False
        if self.kind == "insert":
            return (
                not self.removed
                and not other.removed
                and other.start == self.start + len(self.inserted)
            )
        if self.kind == "delete_left":
            return other.start + len(other.removed) == self.start
        return other.start == self.start

    def merge(self, other: UndoEntry) -> None:
        if self.kind == "insert":
            self.inserted += other.inserted
        elif self.kind == "delete_left":
            self.removed = other.removed + self.removed
            self.start = other.start
        else:
            self.removed += other.removed
        self.cursor_after = other.cursor_after

    def revert(self, text: str) -> str:
        """Return *text* with this entry undone."""
        return text[: self.start] + self.removed + text[self.start + len(self.inserted) :]

    def reapply(self, text: str) -> str:
        """Return *text* with this entry redone."""
        return text[: self.start] + self.inserted + text[self.start + len(self.removed) :]


class UndoHistory:
    """Linear undo/redo history with run coalescing.

    Recording a new entry clears the redo stack. Consecutive entries of the
    same coalescing kind at adjacent offsets merge into one group until
    :meth:`seal` is called.
    """

    def __init__(self) -> None:
        self._undo: list[UndoEntry] = []
        self._redo: list[UndoEntry] = []
        self._sealed = True

    def record(self, entry: UndoEntry) -> None:
        self._redo.clear()
        if not self._sealed and self._undo and self._undo[-1].can_merge(entry):
            self._undo[-1].merge(entry)
        else:
            self._undo.append(entry)
        self._sealed = entry.kind not in _COALESCING_KINDS

    def seal(self) -> None:
        """Close the open group so the next entry starts a new one."""
        self._sealed = True

    def undo(self) -> UndoEntry | None:
        """Pop the newest group onto the redo stack, or ``None`` if empty."""
        self._sealed = True
        if not self._undo:
            return None
        entry = self._undo.pop()
        self._redo.append(entry)
        return entry

    def redo(self) -> UndoEntry | None:
        self._sealed = True
        if not self._redo:
            return None
        entry = self._redo.pop()
        self._undo.append(entry)
        return entry

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self._sealed = True

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def length(self) -> int:
        return len(self._undo)
