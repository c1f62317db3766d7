"""Translate raw terminal input into edit commands.

The decoder sits between the terminal and :class:`BufferEngine`. Chunks go
through a :class:`StdinBuffer` so that escape sequences split across reads,
meta keystrokes and bracketed pastes are seen whole. Each complete sequence
is parsed into a key id and looked up in the keybindings; unbound
printable keys are inserted literally. Anything else is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

from pi.composer.commands import (
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
    Undo,
    Yank,
    YankPop,
)
from pi.composer.keybindings import (
    ComposerAction,
    ComposerKeybindingsManager,
    get_composer_keybindings,
)
from pi.composer.keys import (
    SHIFTED_KEY_MAP,
    KeyEvent,
    KeyId,
    is_key_release,
    parse_key,
    split_key_id,
)
from pi.composer.stdin_buffer import DEFAULT_ESCAPE_TIMEOUT, StdinBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionRequest:
    """A bound key that belongs to the embedding composer, not the buffer."""

    action: ComposerAction


Decoded = Union[EditCommand, ActionRequest]

ACTION_COMMANDS: dict[ComposerAction, EditCommand] = {
    "cursorUp": MoveLine("up"),
    "cursorDown": MoveLine("down"),
    "cursorLeft": MoveChar("left"),
    "cursorRight": MoveChar("right"),
    "cursorWordLeft": MoveWord("left"),
    "cursorWordRight": MoveWord("right"),
    "cursorLineStart": MoveToLineBoundary("left"),
    "cursorLineEnd": MoveToLineBoundary("right"),
    "cursorBufferStart": MoveToBufferBoundary("left"),
    "cursorBufferEnd": MoveToBufferBoundary("right"),
    "deleteCharBackward": DeleteLeft(),
    "deleteCharForward": DeleteRight(),
    "deleteWordBackward": DeleteWordLeft(),
    "deleteWordForward": DeleteWordRight(),
    "killLineStart": KillLineStart(),
    "killLineEnd": KillLineEnd(),
    "killWrappedLineStart": KillWrappedLineStart(),
    "killWrappedLineEnd": KillWrappedLineEnd(),
    "killLine": KillLine(),
    "yank": Yank(),
    "yankPop": YankPop(),
    "newLine": InsertChar("\n"),
    "undo": Undo(),
    "redo": Redo(),
}


class InputDecoder:
    """Stateful decoder from terminal input to :data:`Decoded` values.

    :meth:`feed` returns what it could decode immediately. When an escape
    prefix is still held after the timeout, the flushed characters are
    delivered to :attr:`on_decoded` instead, because no caller is waiting.
    """

    def __init__(
        self,
        *,
        keybindings: ComposerKeybindingsManager | None = None,
        timeout: float = DEFAULT_ESCAPE_TIMEOUT,
    ) -> None:
        self._keybindings = keybindings or get_composer_keybindings()
        self._buffer = StdinBuffer(timeout=timeout)
        self._buffer.on_data(self._handle_sequence)
        self._buffer.on_paste(self._handle_paste)

        self._collected: list[Decoded] | None = None
        self.on_decoded: Callable[[Decoded], None] | None = None

    @property
    def needs_more_input(self) -> bool:
        """``True`` while part of an escape sequence or paste is held."""
        return self._buffer.needs_more_input

    @property
    def pending(self) -> str:
        return self._buffer.get_buffer()

    # -- Entry points --------------------------------------------------------

    def feed(self, data: str) -> list[Decoded]:
        """Decode a chunk of terminal input."""
        self._collected = []
        try:
            self._buffer.process(data)
            return self._collected
        finally:
            self._collected = None

    def flush(self) -> list[Decoded]:
        """Release a held prefix now, decoding each character on its own."""
        decoded: list[Decoded] = []
        for sequence in self._buffer.flush():
            item = self.decode_sequence(sequence)
            if item is not None:
                decoded.append(item)
        return decoded

    def reset(self) -> None:
        self._buffer.clear()

    def decode_sequence(self, sequence: str) -> Decoded | None:
        """Decode one complete sequence. Unknown input yields ``None``."""
        if is_key_release(sequence):
            return None
        key_id = parse_key(sequence)
        if key_id is None:
            logger.debug("Dropping unrecognized input sequence %r", sequence)
            return None
        return self.decode_key_id(key_id)

    def decode_key(self, event: KeyEvent) -> Decoded | None:
        """Decode a key event that already carries modifier flags."""
        return self.decode_key_id(event.key_id)

    def decode_key_id(self, key_id: KeyId) -> Decoded | None:
        action = self._keybindings.action_for(key_id)
        if action is not None:
            command = ACTION_COMMANDS.get(action)
            return command if command is not None else ActionRequest(action)

        mods, base = split_key_id(key_id)
        # Ctrl/alt on a printable key never inserts it
        if "ctrl" in mods or "alt" in mods:
            return None
        if base == "space":
            return InsertChar(" ")
        if len(base) != 1 or not base.isprintable():
            return None
        if "shift" in mods:
            base = base.upper() if base.islower() else SHIFTED_KEY_MAP.get(base, base)
        return InsertChar(base)

    # -- StdinBuffer callbacks -----------------------------------------------

    def _emit(self, item: Decoded) -> None:
        if self._collected is not None:
            self._collected.append(item)
        elif self.on_decoded is not None:
            self.on_decoded(item)
        else:
            logger.debug("No receiver for decoded input %r", item)

    def _handle_sequence(self, sequence: str) -> None:
        item = self.decode_sequence(sequence)
        if item is not None:
            self._emit(item)

    def _handle_paste(self, text: str) -> None:
        if text:
            self._emit(InsertText(text))
