"""Composer: one buffer engine fed by the keyboard and the control channel."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from pi.composer.config import ComposerConfig
from pi.composer.control import ExternalControlChannel, Notifier
from pi.composer.decoder import ActionRequest, Decoded, InputDecoder
from pi.composer.engine import BufferEngine, StateDelta
from pi.composer.history import PromptHistory
from pi.composer.keybindings import ComposerKeybindingsManager
from pi.composer.keys import KeyEvent
from pi.composer.rpc import RpcResponse
from pi.composer.status import TaskStatus, get_task_status

logger = logging.getLogger(__name__)


class Composer:
    """Wires an :class:`InputDecoder` and an :class:`ExternalControlChannel`
    to a single :class:`BufferEngine` on the running event loop.

    Set :attr:`on_submit` to receive submitted text.
    """

    def __init__(
        self,
        config: ComposerConfig | None = None,
        *,
        keybindings: ComposerKeybindingsManager | None = None,
        task_status: TaskStatus | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config or ComposerConfig()
        self.engine = BufferEngine(
            kill_ring_size=self.config.kill_ring_size,
            wrap_width=self.config.wrap_width,
        )
        self.history = PromptHistory(self.config.history_limit)
        self.task_status = task_status if task_status is not None else get_task_status()

        self.decoder = InputDecoder(keybindings=keybindings, timeout=self.config.escape_timeout)
        self.decoder.on_decoded = self._dispatch

        self.channel = ExternalControlChannel(
            self.engine,
            self.config.paths(),
            history=self.history,
            task_status=self.task_status,
            notifier=notifier,
            poll_interval=self.config.poll_interval,
        )

        self.on_submit: Callable[[str], None] | None = None

        self._stop: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def text(self) -> str:
        return self.engine.text

    @property
    def cursor(self) -> int:
        return self.engine.cursor

    # -- Input ---------------------------------------------------------------

    def handle_input(self, data: str) -> list[StateDelta]:
        """Feed raw terminal data and apply what it decodes to."""
        deltas: list[StateDelta] = []
        for item in self.decoder.feed(data):
            delta = self._dispatch(item)
            if delta is not None:
                deltas.append(delta)
        return deltas

    def handle_key(self, event: KeyEvent) -> StateDelta | None:
        item = self.decoder.decode_key(event)
        if item is None:
            return None
        return self._dispatch(item)

    def _dispatch(self, item: Decoded) -> StateDelta | None:
        if isinstance(item, ActionRequest):
            if item.action == "submit":
                self.submit()
            elif item.action == "triggerControl":
                self.trigger_control()
            else:
                logger.debug("Unhandled composer action %s", item.action)
            return None
        # Leaving history browsing once the user edits
        self.history.reset()
        return self.engine.apply(item)

    # -- Composer actions ----------------------------------------------------

    def submit(self) -> str:
        """Record the buffer in history, clear it, and hand it to :attr:`on_submit`."""
        text = self.engine.text
        self.history.add(text)
        self.history.reset()
        self.engine.reset()
        if self.on_submit and text.strip():
            try:
                self.on_submit(text)
            except Exception:
                logger.exception("Submit callback failed")
        return text

    def trigger_control(self) -> RpcResponse | None:
        return self.channel.trigger()

    # -- Lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Start polling the control channel on the running loop."""
        if self._task is not None and not self._task.done():
            return
        self.config.paths().ensure_dir()
        self._stop = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self.channel.run(self._stop))

    async def stop(self) -> None:
        if self._task is None:
            return
        assert self._stop is not None
        self._stop.set()
        try:
            await self._task
        finally:
            self._task = None
            self._stop = None
        self.decoder.reset()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
