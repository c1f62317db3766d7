"""Bounded ring buffer for Emacs-style kill/yank operations."""

from __future__ import annotations

from collections import deque

DEFAULT_KILL_RING_SIZE = 16


class KillRing:
    """Killed text spans, newest on the right.

    Kills never merge: the newest entry is always exactly the last span that
    was removed. Once ``max_size`` entries are held the oldest one is dropped,
    so a ring of size 1 behaves as a single slot.
    """

    def __init__(self, max_size: int = DEFAULT_KILL_RING_SIZE) -> None:
        if max_size < 1:
            raise ValueError("kill ring size must be at least 1")
        self._entries: deque[str] = deque(maxlen=max_size)

    def push(self, text: str) -> None:
        if text:
            self._entries.append(text)

    def peek(self) -> str | None:
        """The entry a yank would insert, or ``None`` when empty."""
        return self._entries[-1] if self._entries else None

    def rotate(self) -> None:
        """Bring the next older entry to the yank position (yank-pop)."""
        self._entries.rotate(1)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def max_size(self) -> int:
        assert self._entries.maxlen is not None
        return self._entries.maxlen

    @property
    def length(self) -> int:
        return len(self._entries)
