import threading
import time

import pytest

from raven.task import BaseTask, TaskConfig, TaskMessage


class Recorder(BaseTask):
    def __init__(self, expected):
        super().__init__(TaskConfig("recorder", 2048, 5, 8))
        self.events = []
        self.received = []
        self.expected = expected
        self.done = threading.Event()

    def on_start(self):
        self.events.append("start")

    def handle_message(self, msg):
        self.events.append("msg")
        self.received.append(msg)
        if len(self.received) >= self.expected:
            self.done.set()


class Blocking(BaseTask):
    def __init__(self):
        super().__init__(TaskConfig("blocking", 2048, 5, 1))
        self.entered = threading.Event()
        self.release = threading.Event()

    def handle_message(self, msg):
        self.entered.set()
        self.release.wait(5)


class Ticker(BaseTask):
    def __init__(self, config, interval, limit):
        super().__init__(config)
        self.interval = interval
        self.limit = limit
        self.ticks = 0
        self.done = threading.Event()

    def on_start(self):
        self.set_tick_interval(self.interval)

    def handle_message(self, msg):
        pass

    def on_tick(self):
        self.ticks += 1
        if self.ticks >= self.limit:
            self.set_tick_interval(0)
            self.done.set()


def test_messages_are_delivered_in_order_after_on_start():
    task = Recorder(expected=3)
    task.start()
    try:
        for msg_id in (1, 2, 3):
            assert task.post_message(TaskMessage(kind=7, id=msg_id)) is True
        assert task.done.wait(2)
        assert task.pending() == 0
        assert [(m.kind, m.id) for m in task.received] == [(7, 1), (7, 2), (7, 3)]
        assert task.events == ["start", "msg", "msg", "msg"]
    finally:
        task.stop()


def test_post_before_start_raises():
    task = Recorder(expected=1)
    with pytest.raises(RuntimeError):
        task.post_message(TaskMessage(kind=1, id=1))


def test_start_twice_raises():
    task = Recorder(expected=1)
    task.start()
    try:
        with pytest.raises(RuntimeError):
            task.start()
        assert task.post_message(TaskMessage(kind=1, id=9)) is True
        assert task.done.wait(2)
        assert task.events.count("start") == 1
    finally:
        task.stop()


def test_payload_is_copied_at_post_time():
    task = Recorder(expected=1)
    buffer = bytearray(b"abc")
    original = bytes(buffer)
    with task:
        assert task.post_message(TaskMessage(kind=1, id=2, data=buffer))
        buffer[0] = 0
        assert task.done.wait(2)
    received = task.received[0]
    assert received.data == original
    assert received.payload_size == len(original)


def test_missing_data_with_nonzero_size_is_rejected():
    task = Recorder(expected=1)
    with task:
        assert task.post_message(TaskMessage(kind=1, id=1, data=None, payload_size=4)) is False


def test_payload_size_defaults_to_data_length():
    msg = TaskMessage(kind=1, id=1, data=b"hello")
    assert msg.payload_size == len(b"hello")
    assert TaskMessage(kind=1, id=1).payload_size == 0


def test_payload_size_larger_than_data_raises():
    with pytest.raises(ValueError):
        TaskMessage(kind=1, id=1, data=b"ab", payload_size=3)


def test_queue_length_must_be_positive():
    with pytest.raises(ValueError):
        TaskConfig("bad", 2048, 5, 0)


def test_full_queue_times_out():
    task = Blocking()
    task.start()
    try:
        assert task.post_message(TaskMessage(kind=1, id=1))
        assert task.entered.wait(2)
        assert task.post_message(TaskMessage(kind=1, id=2), timeout=0.05) is True
        assert task.post_message(TaskMessage(kind=1, id=3), timeout=0.05) is False
        assert task.pending() == 1
    finally:
        task.release.set()
        task.stop()


def test_ticks_fire_until_disabled():
    task = Ticker(TaskConfig("ticker", 2048, 5, 4), interval=0.01, limit=3)
    task.start()
    try:
        assert task.done.wait(2)
        time.sleep(0.05)
        assert task.ticks == task.limit
        assert task.post_message(TaskMessage(kind=1, id=1)) is True
        time.sleep(0.05)
        assert task.ticks == task.limit
    finally:
        task.stop()


def test_negative_tick_interval_raises():
    task = Ticker(TaskConfig("ticker", 2048, 5, 4), interval=0.01, limit=1)
    with pytest.raises(ValueError):
        task.set_tick_interval(-1)


def test_stop_ends_task_and_rejects_posts():
    task = Recorder(expected=1)
    task.start()
    assert task.running is True
    task.stop()
    assert task.running is False
    assert task.post_message(TaskMessage(kind=1, id=1), timeout=0.01) is False
    assert task.pending() == 0