"""Worker tasks: a thread with a bounded inbound message queue and optional ticking."""

from __future__ import annotations

import abc
import threading
import time
from collections import deque
from dataclasses import dataclass


@dataclass
class TaskMessage:
    """Directed message posted to a task's inbound queue.

    ``kind`` and ``id`` together identify what the message represents.
    ``data`` is an optional payload; ``payload_size`` defaults to its length.
    """

    kind: int
    id: int
    data: bytes | None = None
    payload_size: int | None = None

    def __post_init__(self) -> None:
        if self.payload_size is None:
            self.payload_size = len(self.data) if self.data is not None else 0
        elif self.payload_size < 0:
            raise ValueError("payload_size must not be negative")
        elif self.data is not None and self.payload_size > len(self.data):
            raise ValueError("payload_size exceeds the length of data")


@dataclass(frozen=True)
class TaskConfig:
    """Settings of a task: name, nominal stack size, priority and queue capacity."""

    name: str
    stack_size: int
    priority: int
    queue_length: int

    def __post_init__(self) -> None:
        if self.queue_length < 1:
            raise ValueError("queue_length must be at least 1")


class _Mailbox:
    """Bounded FIFO that can be closed to wake every waiter."""

    def __init__(self, capacity: int) -> None:
        self._items: deque[TaskMessage] = deque()
        self._capacity = capacity
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, item: TaskMessage, timeout: float | None) -> bool:
        with self._cond:
            has_room = self._cond.wait_for(
                lambda: self._closed or len(self._items) < self._capacity, timeout
            )
            if self._closed or not has_room:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self, timeout: float | None) -> TaskMessage | None:
        with self._cond:
            self._cond.wait_for(lambda: self._closed or bool(self._items), timeout)
            if self._closed or not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._items.clear()
            self._cond.notify_all()


class BaseTask(abc.ABC):
    """A worker thread that processes messages from its own inbound queue.

    Subclasses implement :meth:`handle_message`; business logic always runs
    in the task's own thread, never inside callbacks.
    """

    def __init__(self, config: TaskConfig) -> None:
        self.config = config
        self._mailbox: _Mailbox | None = None
        self._thread: threading.Thread | None = None
        self._tick_interval = 0.0
        self._last_tick = 0.0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def running(self) -> bool:
        """True while the task thread is alive and has not been stopped."""
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._mailbox is not None
            and not self._mailbox.closed
        )

    def start(self) -> None:
        """Create the inbound queue and spawn the task thread. Only once."""
        if self._mailbox is not None:
            raise RuntimeError(f"task {self.name!r} already started")
        self._mailbox = _Mailbox(self.config.queue_length)
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the task thread and drop any queued messages."""
        if self._mailbox is None:
            return
        self._mailbox.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def post_message(self, msg: TaskMessage, timeout: float | None = None) -> bool:
        """Enqueue a copy of ``msg``; wait up to ``timeout`` seconds (None: forever).

        Returns True if the message was accepted in time.
        """
        if self._mailbox is None:
            raise RuntimeError(f"post_message() on task {self.name!r} before start()")
        size = msg.payload_size or 0
        data: bytes | None = None
        if size > 0:
            if msg.data is None:
                return False
            data = bytes(msg.data[:size])
        copy = TaskMessage(msg.kind, msg.id, data, size)
        return self._mailbox.put(copy, timeout)

    def pending(self) -> int:
        """Number of messages waiting in the inbound queue."""
        return len(self._mailbox) if self._mailbox is not None else 0

    def on_start(self) -> None:
        """Called once in the task thread before the receive loop begins."""

    @abc.abstractmethod
    def handle_message(self, msg: TaskMessage) -> None:
        """Process one message dequeued from the inbound queue."""

    def on_tick(self) -> None:
        """Called at roughly the configured tick interval."""

    def set_tick_interval(self, interval: float) -> None:
        """Enable periodic ticking every ``interval`` seconds; 0 disables it.

        Meant to be called from within the task thread.
        """
        if interval < 0:
            raise ValueError("tick interval must not be negative")
        self._tick_interval = interval
        self._last_tick = time.monotonic()

    def __enter__(self) -> BaseTask:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self) -> None:
        mailbox = self._mailbox
        assert mailbox is not None
        self.on_start()
        while not mailbox.closed:
            wait: float | None = None
            if self._tick_interval > 0:
                elapsed = time.monotonic() - self._last_tick
                wait = max(0.0, self._tick_interval - elapsed)

            msg = mailbox.get(wait)
            if msg is not None:
                self.handle_message(msg)

            if mailbox.closed:
                break

            if self._tick_interval > 0:
                elapsed = time.monotonic() - self._last_tick
                if elapsed >= self._tick_interval:
                    self.on_tick()
                    self._last_tick = time.monotonic()