"""Configuration for the composer core and its control channel."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from pi.composer.engine import DEFAULT_WRAP_WIDTH
from pi.composer.history import DEFAULT_HISTORY_LIMIT
from pi.composer.kill_ring import DEFAULT_KILL_RING_SIZE
from pi.composer.stdin_buffer import DEFAULT_ESCAPE_TIMEOUT

logger = logging.getLogger(__name__)

CONTROL_DIR_NAME = ".pi-talon"
REQUEST_FILENAME = "request.json"
RESPONSE_FILENAME = "response.json"
CONSUMED_FILENAME = "consumed.sha256"

DEFAULT_POLL_INTERVAL = 0.25


def _default_control_dir() -> Path:
    return Path.home() / CONTROL_DIR_NAME


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r", name, raw)
        return default
    return value


@dataclass
class ComposerConfig:
    """Composer settings. Durations are in seconds."""

    control_dir: Path = field(default_factory=_default_control_dir)
    request_filename: str = REQUEST_FILENAME
    response_filename: str = RESPONSE_FILENAME
    consumed_filename: str = CONSUMED_FILENAME
    poll_interval: float = DEFAULT_POLL_INTERVAL
    escape_timeout: float = DEFAULT_ESCAPE_TIMEOUT
    kill_ring_size: int = DEFAULT_KILL_RING_SIZE
    wrap_width: int = DEFAULT_WRAP_WIDTH
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @classmethod
    def from_env(cls) -> ComposerConfig:
        """Build a config from ``PI_TALON_*`` / ``PI_COMPOSER_*`` variables."""
        control_dir = os.environ.get("PI_TALON_DIR")
        return cls(
            control_dir=Path(control_dir).expanduser() if control_dir else _default_control_dir(),
            poll_interval=_env_float("PI_TALON_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            escape_timeout=_env_float("PI_COMPOSER_ESCAPE_TIMEOUT", DEFAULT_ESCAPE_TIMEOUT),
        )

    def paths(self) -> ControlPaths:
        return ControlPaths(
            request_path=self.control_dir / self.request_filename,
            response_path=self.control_dir / self.response_filename,
            consumed_path=self.control_dir / self.consumed_filename,
        )


@dataclass(frozen=True)
class ControlPaths:
    """Well-known artifact locations shared with the external client."""

    request_path: Path
    response_path: Path
    consumed_path: Path

    @property
    def base_dir(self) -> Path:
        return self.request_path.parent

    def ensure_dir(self) -> None:
        """Create the artifact directory on first use."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
