"""File-based control channel for an external automation client.

The client drops a JSON request into the control directory; the channel
notices it on the next poll, applies its commands through the same
:class:`BufferEngine` the keyboard uses, and answers with a response file.

Polling only stats the request path. Reading, hashing and applying happen
in :meth:`ExternalControlChannel.process`, which runs synchronously on the
event loop thread so a batch is never interleaved with keystrokes.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from typing import Literal, Protocol

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from pi.composer.config import DEFAULT_POLL_INTERVAL, ControlPaths
from pi.composer.commands import SetBuffer, SetCursor
from pi.composer.engine import BufferEngine
from pi.composer.history import PromptHistory
from pi.composer.response import ResponseWriter, atomic_write_text, build_response
from pi.composer.rpc import (
    KNOWN_COMMAND_TYPES,
    EditPreviousMessageCommand,
    GetStateCommand,
    HistoryNextCommand,
    HistoryPreviousCommand,
    NotifyCommand,
    RequestParseError,
    ResponseStatus,
    RpcCommand,
    RpcResponse,
    SetBufferCommand,
    SetCursorCommand,
    command_type,
    parse_command,
    parse_request,
)
from pi.composer.status import TaskStatus, get_task_status
from pi.composer.utils import byte_to_char_offset

logger = logging.getLogger(__name__)

ChannelState = Literal[
    "idle",
    "request_detected",
    "validating",
    "applying",
    "response_written",
]

# (mtime_ns, size) of the request file as seen by os.stat
Signature = tuple[int, int]


class Notifier(Protocol):
    def __call__(self, message: str) -> None: ...


class ExternalControlChannel:
    """Poll / validate / apply / respond loop over the control artifacts."""

    def __init__(
        self,
        engine: BufferEngine,
        paths: ControlPaths,
        *,
        history: PromptHistory | None = None,
        task_status: TaskStatus | None = None,
        notifier: Notifier | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.engine = engine
        self.paths = paths
        self.history = history if history is not None else PromptHistory()
        self.task_status = task_status if task_status is not None else get_task_status()
        self.notifier = notifier
        self.poll_interval = poll_interval

        self._writer = ResponseWriter(paths.response_path)
        self._state: ChannelState = "idle"
        self._seen: Signature | None = None
        self._consumed: str | None = None
        self._consumed_loaded = False

    @property
    def state(self) -> ChannelState:
        return self._state

    # -- Polling -------------------------------------------------------------

    def _stat(self) -> Signature | None:
        try:
            st = os.stat(self.paths.request_path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot stat %s: %s", self.paths.request_path, e)
            return None
        return (st.st_mtime_ns, st.st_size)

    def poll(self) -> bool:
        """Return ``True`` when a request with an unseen signature is present."""
        signature = self._stat()
        if signature is None:
            self._seen = None
            if self._state == "response_written":
                self._state = "idle"
            return False
        if signature == self._seen:
            # Answered but left in place (a rejected request)
            if self._state == "response_written":
                self._state = "idle"
            return False
        self._state = "request_detected"
        return True

    def tick(self) -> RpcResponse | None:
        """One poll cycle: process the request if a new one appeared."""
        if self.poll():
            return self.process()
        return None

    def trigger(self) -> RpcResponse | None:
        """Process a pending request now, or report ``no_request``."""
        if self.poll():
            response = self.process()
            if response is not None:
                return response
        response = build_response(self.engine.snapshot(), self.task_status, status="no_request")
        try:
            self._writer.write(response)
        except (OSError, PydanticSerializationError) as e:
            logger.warning("Failed to write response %s: %s", self.paths.response_path, e)
            return None
        return response

    async def run(self, stop: asyncio.Event) -> None:
        """Poll until *stop* is set."""
        logger.debug("Control channel polling %s every %.2fs", self.paths.request_path, self.poll_interval)
        while not stop.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Control channel cycle failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.poll_interval)
            except TimeoutError:
                pass

    # -- Processing ----------------------------------------------------------

    def process(self) -> RpcResponse | None:
        """Read, validate, apply and answer the current request.

        Returns ``None`` when there was nothing to answer: the file vanished,
        is still empty, could not be read, or the consumed marker could not be
        persisted. In the I/O failure cases the signature is left unrecorded
        so the next poll retries.
        """
        path = self.paths.request_path
        try:
            st = os.stat(path)
            raw = path.read_bytes()
        except FileNotFoundError:
            self._seen = None
            self._state = "idle"
            return None
        except OSError as e:
            logger.warning("Failed to read request %s: %s", path, e)
            self._state = "idle"
            return None

        signature = (st.st_mtime_ns, st.st_size)
        if not raw.strip():
            # Probably mid-write; a later write changes the signature
            self._seen = signature
            self._state = "idle"
            return None

        marker = f"{hashlib.sha256(raw).hexdigest()} {st.st_mtime_ns}"
        if marker == self._load_consumed():
            logger.info("Request %s was already consumed; answering with current state", path)
            response = build_response(self.engine.snapshot(), self.task_status, status="no_request")
            return self._finish(signature, response)

        try:
            atomic_write_text(self.paths.consumed_path, marker + "\n")
        except OSError as e:
            logger.warning("Failed to record consumed request in %s: %s", self.paths.consumed_path, e)
            self._state = "idle"
            return None
        self._consumed = marker

        self._state = "validating"
        try:
            request = parse_request(raw)
        except RequestParseError as e:
            logger.warning("Rejecting request %s: %s", path, e)
            response = build_response(self.engine.snapshot(), self.task_status, status="error", error=str(e))
            # Left in place: a half-written file is re-read once its signature changes
            return self._finish(signature, response, remove_request=False)

        self._state = "applying"
        applied: list[str] = []
        for index, raw_command in enumerate(request.commands):
            kind = command_type(raw_command)
            if kind not in KNOWN_COMMAND_TYPES:
                logger.warning("Skipping unknown command #%d (type=%r)", index, kind)
                continue
            try:
                command = parse_command(raw_command)
            except ValidationError as e:
                logger.warning("Skipping malformed %s command #%d: %s", kind, index, e.errors()[0]["msg"])
                continue
            if self._apply(command):
                applied.append(command.type)

        logger.debug("Applied %d of %d command(s) from %s", len(applied), len(request.commands), path)
        # Nothing applied is reported the same way as an empty request
        status: ResponseStatus = "ok" if applied else "no_request"
        response = build_response(self.engine.snapshot(), self.task_status, status=status, applied=applied)
        return self._finish(signature, response)

    def _finish(
        self, signature: Signature, response: RpcResponse, *, remove_request: bool = True
    ) -> RpcResponse | None:
        try:
            self._writer.write(response)
        except (OSError, PydanticSerializationError) as e:
            logger.warning("Failed to write response %s: %s", self.paths.response_path, e)
            self._state = "idle"
            return None
        self._state = "response_written"
        self._seen = signature
        if not remove_request:
            return response
        try:
            self.paths.request_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove request %s: %s", self.paths.request_path, e)
        else:
            # The next file at this path is a new request even if its stat matches
            self._seen = None
        return response

    def _load_consumed(self) -> str | None:
        if not self._consumed_loaded:
            try:
                self._consumed = self.paths.consumed_path.read_text(encoding="utf-8").strip() or None
            except FileNotFoundError:
                self._consumed = None
            except OSError as e:
                logger.warning("Failed to read %s: %s", self.paths.consumed_path, e)
                return None
            self._consumed_loaded = True
        return self._consumed

    def _apply(self, command: RpcCommand) -> bool:
        """Apply one validated command. Returns ``False`` if it was skipped."""
        if isinstance(command, SetBufferCommand):
            cursor = None if command.cursor is None else byte_to_char_offset(command.text, command.cursor)
            self.engine.apply(SetBuffer(command.text, cursor))
            return True

        if isinstance(command, SetCursorCommand):
            self.engine.apply(SetCursor(byte_to_char_offset(self.engine.text, command.cursor)))
            return True

        if isinstance(command, GetStateCommand):
            return True

        if isinstance(command, NotifyCommand):
            if self.notifier is None:
                logger.info("Notification: %s", command.message)
                return True
            try:
                self.notifier(command.message)
            except Exception:
                logger.exception("Notifier failed")
                return False
            return True

        if isinstance(command, HistoryPreviousCommand):
            entry = self.history.previous()
            if entry is not None:
                self.engine.apply(SetBuffer(entry))
            return True

        if isinstance(command, HistoryNextCommand):
            entry = self.history.next()
            if entry is not None:
                self.engine.apply(SetBuffer(entry))
            return True

        if isinstance(command, EditPreviousMessageCommand):
            entry = self.history.entry(command.steps_back)
            if entry is None:
                logger.warning("No history entry %d steps back", command.steps_back)
                return False
            self.engine.apply(SetBuffer(entry))
            return True

        return False
