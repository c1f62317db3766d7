"""Prompt history for up/down style navigation through submitted prompts."""

from __future__ import annotations

DEFAULT_HISTORY_LIMIT = 100


class PromptHistory:
    """Newest-first list of submitted prompts with a browsing position.

    Index ``-1`` is the live draft; ``0`` is the most recent submission.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._entries: list[str] = []
        self._index = -1
        self._limit = limit

    def add(self, text: str) -> None:
        """Add a prompt to history, skipping blanks and consecutive duplicates."""
        trimmed = text.strip()
        if not trimmed:
            return
        self._index = -1
        if self._entries and self._entries[0] == trimmed:
            return
        self._entries.insert(0, trimmed)
        if len(self._entries) > self._limit:
            self._entries.pop()

    def previous(self) -> str | None:
        """Step to an older entry. Returns ``None`` when already at the oldest."""
        if self._index + 1 >= len(self._entries):
            return None
        self._index += 1
        return self._entries[self._index]

    def next(self) -> str | None:
        """Step to a newer entry; stepping past the newest yields the empty draft."""
        if self._index < 0:
            return None
        self._index -= 1
        return "" if self._index == -1 else self._entries[self._index]

    def entry(self, steps_back: int) -> str | None:
        """Return the entry *steps_back* positions behind the newest, without moving."""
        if 0 <= steps_back < len(self._entries):
            return self._entries[steps_back]
        return None

    def reset(self) -> None:
        self._index = -1

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._entries)
