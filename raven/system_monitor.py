"""Periodic reporter of memory usage and queue depths."""

from __future__ import annotations

import logging
import threading
import tracemalloc
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitorConfig:
    """Settings of the monitor; ``period`` is in seconds."""

    name: str = "system_monitor"
    stack_size: int = 4096
    priority: int = 1
    period: float = 2.0


def _waiting(queue: Any) -> int:
    pending = getattr(queue, "pending", None)
    if callable(pending):
        return int(pending())
    qsize = getattr(queue, "qsize", None)
    if callable(qsize):
        return int(qsize())
    return len(queue)


class SystemMonitorTask:
    """Background thread that logs memory and watched queue depths each period."""

    def __init__(self, config: MonitorConfig | None = None) -> None:
        self.config = config if config is not None else MonitorConfig()
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        self._watched: list[tuple[str, Any]] = []
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitor thread; does nothing if it is already running."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name=self.config.name, daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the monitor thread."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def watch_queue(self, name: str, queue: Any) -> None:
        """Add a queue to report; ignored when either argument is missing.

        ``queue`` may be a task with ``pending()``, a ``queue.Queue`` or any sized object.
        """
        if not name or queue is None:
            return
        with self._lock:
            self._watched.append((name, queue))

    def report(self) -> list[str]:
        """Log one round of measurements and return the logged lines."""
        lines: list[str] = []
        if tracemalloc.is_tracing():
            current, peak = tracemalloc.get_traced_memory()
            lines.append(f"heap: current={current} peak={peak}")
        with self._lock:
            watched = list(self._watched)
        for name, queue in watched:
            lines.append(f"queue[{name}]: waiting={_waiting(queue)}")
        for line in lines:
            logger.info("%s", line)
        return lines

    def _run(self) -> None:
        while not self._stop.is_set():
            self.report()
            if self._stop.wait(self.config.period):
                break