"""Composer keybindings manager."""

from __future__ import annotations

from typing import Literal

from pi.composer.keys import KeyId, normalize_key_id

ComposerAction = Literal[
    # Cursor movement
    "cursorUp",
    "cursorDown",
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    "cursorBufferStart",
    "cursorBufferEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteWordForward",
    # Kill ring
    "killLineStart",
    "killLineEnd",
    "killWrappedLineStart",
    "killWrappedLineEnd",
    "killLine",
    "yank",
    "yankPop",
    # Text input
    "newLine",
    # Undo
    "undo",
    "redo",
    # Composer actions (handled by the embedding application)
    "submit",
    "triggerControl",
]

ComposerKeybindingsConfig = dict[ComposerAction, KeyId | list[KeyId]]

DEFAULT_COMPOSER_KEYBINDINGS: dict[ComposerAction, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorUp": ["up", "ctrl+p"],
    "cursorDown": ["down", "ctrl+n"],
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorWordLeft": ["alt+left", "ctrl+left", "alt+b"],
    "cursorWordRight": ["alt+right", "ctrl+right", "alt+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    "cursorBufferStart": ["ctrl+home", "alt+<"],
    "cursorBufferEnd": ["ctrl+end", "alt+>"],
    # Deletion
    "deleteCharBackward": "backspace",
    "deleteCharForward": ["delete", "ctrl+d"],
    "deleteWordBackward": ["ctrl+w", "alt+backspace"],
    "deleteWordForward": ["alt+d", "alt+delete"],
    # Kill ring
    "killLineStart": "ctrl+u",
    "killLineEnd": "ctrl+k",
    "killWrappedLineStart": "alt+u",
    "killWrappedLineEnd": "alt+k",
    "killLine": ["ctrl+shift+k", "ctrl+alt+k"],
    "yank": "ctrl+y",
    "yankPop": "alt+y",
    # Text input
    "newLine": ["shift+enter", "alt+enter"],
    # Undo
    "undo": ["ctrl+z", "ctrl+-", "ctrl+_"],
    "redo": ["ctrl+shift+z", "alt+z"],
    # Composer actions
    "submit": "enter",
    "triggerControl": "ctrl+t",
}


class ComposerKeybindingsManager:
    """Maps key ids to composer actions, with user overrides."""

    def __init__(self, config: ComposerKeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[ComposerAction, list[KeyId]] = {}
        self._key_to_action: dict[KeyId, ComposerAction] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: ComposerKeybindingsConfig) -> None:
        self._action_to_keys.clear()
        self._key_to_action.clear()

        # Start with defaults, then override with user config
        for source in (DEFAULT_COMPOSER_KEYBINDINGS, config):
            for action, keys in source.items():
                key_array = keys if isinstance(keys, list) else [keys]
                self._action_to_keys[action] = [normalize_key_id(key) for key in key_array]

        # User-configured actions claim their keys first
        for action in [*config, *self._action_to_keys]:
            for key in self._action_to_keys[action]:
                self._key_to_action.setdefault(key, action)

    def action_for(self, key_id: KeyId) -> ComposerAction | None:
        """Return the action bound to *key_id*, or ``None``."""
        return self._key_to_action.get(normalize_key_id(key_id))

    def matches(self, key_id: KeyId, action: ComposerAction) -> bool:
        """Check if a key id is bound to a specific action."""
        return normalize_key_id(key_id) in self._action_to_keys.get(action, [])

    def get_keys(self, action: ComposerAction) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: ComposerKeybindingsConfig) -> None:
        """Update configuration."""
        self._build_maps(config)


_global_composer_keybindings: ComposerKeybindingsManager | None = None


def get_composer_keybindings() -> ComposerKeybindingsManager:
    global _global_composer_keybindings
    if _global_composer_keybindings is None:
        _global_composer_keybindings = ComposerKeybindingsManager()
    return _global_composer_keybindings


def set_composer_keybindings(manager: ComposerKeybindingsManager) -> None:
    global _global_composer_keybindings
    _global_composer_keybindings = manager
