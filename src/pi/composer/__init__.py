"""pi-composer: editing core for the terminal prompt composer."""

# Edit commands
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
    SetBuffer,
    SetCursor,
    Undo,
    Yank,
    YankPop,
    is_edit_command,
)

# Composer
from pi.composer.composer import Composer

# Configuration
from pi.composer.config import ComposerConfig, ControlPaths

# Control channel
from pi.composer.control import ChannelState, ExternalControlChannel, Notifier

# Input decoding
from pi.composer.decoder import ActionRequest, Decoded, InputDecoder

# Buffer engine
from pi.composer.engine import BufferEngine, BufferState, CommandRejected, StateDelta

# History and task status
from pi.composer.history import PromptHistory

# Keybindings
from pi.composer.keybindings import (
    DEFAULT_COMPOSER_KEYBINDINGS,
    ComposerAction,
    ComposerKeybindingsManager,
    get_composer_keybindings,
    set_composer_keybindings,
)

# Keyboard input handling
from pi.composer.keys import KeyEvent, KeyId, is_key_release, parse_key
from pi.composer.kill_ring import KillRing

# Wire format
from pi.composer.response import ResponseWriter, build_response, serialize_response
from pi.composer.rpc import EditorState, RequestParseError, RpcRequest, RpcResponse
from pi.composer.status import TaskStatus, get_task_status, set_task_status
from pi.composer.stdin_buffer import StdinBuffer
from pi.composer.undo import UndoEntry, UndoHistory

__all__ = [
    # Edit commands
    "DeleteLeft",
    "DeleteRight",
    "DeleteWordLeft",
    "DeleteWordRight",
    "EditCommand",
    "InsertChar",
    "InsertText",
    "KillLine",
    "KillLineEnd",
    "KillLineStart",
    "KillWrappedLineEnd",
    "KillWrappedLineStart",
    "MoveChar",
    "MoveLine",
    "MoveToBufferBoundary",
    "MoveToLineBoundary",
    "MoveWord",
    "Redo",
    "SetBuffer",
    "SetCursor",
    "Undo",
    "Yank",
    "YankPop",
    "is_edit_command",
    # Engine
    "BufferEngine",
    "BufferState",
    "CommandRejected",
    "KillRing",
    "StateDelta",
    "UndoEntry",
    "UndoHistory",
    # Input
    "ActionRequest",
    "Decoded",
    "InputDecoder",
    "KeyEvent",
    "KeyId",
    "StdinBuffer",
    "is_key_release",
    "parse_key",
    # Keybindings
    "DEFAULT_COMPOSER_KEYBINDINGS",
    "ComposerAction",
    "ComposerKeybindingsManager",
    "get_composer_keybindings",
    "set_composer_keybindings",
    # Control channel
    "ChannelState",
    "EditorState",
    "ExternalControlChannel",
    "Notifier",
    "RequestParseError",
    "ResponseWriter",
    "RpcRequest",
    "RpcResponse",
    "build_response",
    "serialize_response",
    # Composer
    "Composer",
    "ComposerConfig",
    "ControlPaths",
    "PromptHistory",
    "TaskStatus",
    "get_task_status",
    "set_task_status",
]
