"""Task status reported to the external control client.

The embedding application owns the task lifecycle; it pushes updates here
and the control channel reads them when it builds a response.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TaskStatus:
    is_task_running: bool = False
    summary: str | None = None

    def set_running(self, running: bool) -> None:
        self.is_task_running = running

    def set_summary(self, summary: str | None) -> None:
        self.summary = summary or None


_global_task_status: TaskStatus | None = None


def get_task_status() -> TaskStatus:
    global _global_task_status
    if _global_task_status is None:
        _global_task_status = TaskStatus()
    return _global_task_status


def set_task_status(status: TaskStatus) -> None:
    global _global_task_status
    _global_task_status = status
