"""Reassemble terminal input into complete key sequences.

Terminal data can arrive in partial chunks, so an escape introducer may be
the start of an arrow key, a meta keystroke, or just a lone Escape. The
buffer holds an incomplete prefix until the rest arrives or a short timeout
elapses; on timeout the held characters are emitted one by one so the
decoder can treat them as literal input.
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Callable

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

DEFAULT_ESCAPE_TIMEOUT = 0.01

# CSI: parameter bytes, intermediate bytes, one final byte
_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
# OSC ends with BEL or ST; DCS/SOS/PM/APC end with ST
_OSC_RE = re.compile(r"\x1b\].*?(?:\x07|\x1b\\)", re.DOTALL)
_STRING_RE = re.compile(r"\x1b[PX^_].*?\x1b\\", re.DOTALL)

# X10 mouse report: ESC [ M plus three raw bytes
_X10_MOUSE_LENGTH = 6


def _leading_sequence_length(data: str) -> int | None:
    """Length of the complete sequence at the start of *data*.

    Returns ``None`` while the leading escape sequence is still incomplete.
    """
    if not data.startswith(ESC):
        return 1
    if len(data) == 1:
        return None

    intro = data[1]
    if intro == "[":
        if data.startswith("\x1b[M"):
            return _X10_MOUSE_LENGTH if len(data) >= _X10_MOUSE_LENGTH else None
        m = _CSI_RE.match(data)
    elif intro == "]":
        m = _OSC_RE.match(data)
    elif intro in "PX^_":
        m = _STRING_RE.match(data)
    elif intro == "O":
        # SS3 carries exactly one more character
        return 3 if len(data) >= 3 else None
    else:
        # Meta keystroke
        return 2
    return m.end() if m else None


def _split_sequences(data: str) -> tuple[list[str], str]:
    """Split *data* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    while data:
        length = _leading_sequence_length(data)
        if length is None:
            break
        sequences.append(data[:length])
        data = data[length:]
    return sequences, data


class StdinBuffer:
    """Emits complete sequences and bracketed pastes from chunked input.

    The flush timer runs on the current asyncio loop. Without a running loop
    the prefix stays held and is released by the next :meth:`process` call
    that arrives after the timeout, or by an explicit :meth:`flush`.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_ESCAPE_TIMEOUT,
        on_data: Callable[[str], None] | None = None,
        on_paste: Callable[[str], None] | None = None,
    ) -> None:
        self._timeout = timeout
        self._pending = ""
        # Text collected since a paste start marker; None outside a paste
        self._paste: str | None = None
        self._flush_handle: asyncio.TimerHandle | None = None
        # time.monotonic() after which a held prefix is stale
        self._flush_deadline: float | None = None

        self._on_data = on_data
        self._on_paste = on_paste

    def on_data(self, callback: Callable[[str], None]) -> None:
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        self._on_paste = callback

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def needs_more_input(self) -> bool:
        """``True`` while an incomplete sequence or paste is being held."""
        return bool(self._pending) or self._paste is not None

    # -- Input ---------------------------------------------------------------

    def process(self, data: str) -> None:
        """Feed a chunk of terminal input."""
        self._cancel_flush()
        if self._pending and self._is_stale():
            self._emit(self.flush())
        while data:
            if self._paste is not None:
                data = self._continue_paste(data)
                continue

            combined = self._pending + data
            self._pending = ""
            paste_at = combined.find(BRACKETED_PASTE_START)
            if paste_at == -1:
                sequences, self._pending = _split_sequences(combined)
                self._emit(sequences)
                break

            sequences, _ = _split_sequences(combined[:paste_at])
            self._emit(sequences)
            self._paste = ""
            data = combined[paste_at + len(BRACKETED_PASTE_START) :]

        if self._pending:
            self._schedule_flush()
        else:
            self._flush_deadline = None

    def _continue_paste(self, data: str) -> str:
        """Collect paste text; returns whatever follows the end marker."""
        assert self._paste is not None
        collected = self._paste + data
        end_at = collected.find(BRACKETED_PASTE_END)
        if end_at == -1:
            self._paste = collected
            return ""
        self._paste = None
        if self._on_paste:
            self._on_paste(collected[:end_at])
        return collected[end_at + len(BRACKETED_PASTE_END) :]

    def _emit(self, sequences: list[str]) -> None:
        if self._on_data:
            for sequence in sequences:
                self._on_data(sequence)

    # -- Escape timeout ------------------------------------------------------

    def _schedule_flush(self) -> None:
        self._flush_deadline = time.monotonic() + self._timeout
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._flush_handle = loop.call_later(self._timeout, self._on_flush_timer)

    def _on_flush_timer(self) -> None:
        self._flush_handle = None
        self._emit(self.flush())

    def _is_stale(self) -> bool:
        return self._flush_deadline is not None and time.monotonic() >= self._flush_deadline

    def _cancel_flush(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

    def flush(self) -> list[str]:
        """Release held input as individual characters."""
        self._cancel_flush()
        self._flush_deadline = None
        held, self._pending = list(self._pending), ""
        return held

    def clear(self) -> None:
        self._cancel_flush()
        self._flush_deadline = None
        self._pending = ""
        self._paste = None

    def get_buffer(self) -> str:
        return self._pending
