"""Build and atomically publish control-channel responses."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path

from pi.composer.engine import BufferState
from pi.composer.rpc import EditorState, ResponseStatus, RpcResponse
from pi.composer.status import TaskStatus
from pi.composer.utils import char_to_byte_offset

logger = logging.getLogger(__name__)


def now_timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def build_response(
    state: BufferState,
    task: TaskStatus,
    *,
    status: ResponseStatus = "ok",
    applied: list[str] | None = None,
    error: str | None = None,
    timestamp_ms: int | None = None,
) -> RpcResponse:
    """Snapshot *state* into a response. The cursor goes out as a UTF-8 byte offset."""
    return RpcResponse(
        status=status,
        state=EditorState(
            buffer=state.text,
            cursor=char_to_byte_offset(state.text, state.cursor),
            is_task_running=task.is_task_running,
            task_summary=task.summary,
        ),
        applied=list(applied or []),
        error=error,
        timestamp_ms=now_timestamp_ms() if timestamp_ms is None else timestamp_ms,
    )


def serialize_response(response: RpcResponse) -> str:
    # Optional fields are omitted when unset; ``applied`` is always present.
    return response.model_dump_json(indent=2, exclude_none=True)


def atomic_write_text(path: Path, text: str) -> None:
    """Write *text* to a sibling temp file, then rename it over *path*.

    Raises ``OSError`` if the directory is unwritable; the temp file is
    removed in that case.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as f:
        tmp_path = Path(f.name)
        try:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        except OSError:
            f.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class ResponseWriter:
    """Publishes responses so a reader never observes a partial file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, response: RpcResponse) -> None:
        atomic_write_text(self.path, serialize_response(response))
        logger.debug("Wrote %s response to %s", response.status, self.path)
