import dataclasses
import threading

import pytest

from raven.navigation_state import JoystickData, NavigationState


def test_defaults_are_zero():
    state = NavigationState()
    assert (state.x, state.y, state.z) == (0.0, 0.0, 0.0)
    assert state.get_joystick() == JoystickData(0.0, 0.0, 0)


def test_set_and_get_joystick_round_trip():
    state = NavigationState()
    state.set_joystick(0.25, -0.5, 1234)
    assert state.get_joystick() == JoystickData(0.25, -0.5, 1234)


def test_snapshot_is_immutable():
    state = NavigationState()
    state.set_joystick(0.5, 0.75, 42)
    snapshot = state.get_joystick()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.x = 1.0
    assert snapshot == JoystickData(0.5, 0.75, 42)
    assert state.get_joystick() == JoystickData(0.5, 0.75, 42)


def test_later_write_replaces_earlier():
    state = NavigationState()
    state.set_joystick(0.1, 0.2, 10)
    state.set_joystick(0.3, 0.4, 20)
    assert state.get_joystick().timestamp_ms == 20


def test_position_fields_are_independent():
    state = NavigationState()
    state.x = state.x + 1.0
    assert state.x == 1.0
    assert state.y == 0.0


def test_concurrent_readers_see_consistent_triples():
    state = NavigationState()
    inconsistent = []
    stop = threading.Event()

    def writer():
        for value in range(2000):
            state.set_joystick(float(value), float(value), value)
        stop.set()

    def reader():
        while not stop.is_set():
            js = state.get_joystick()
            if not (js.x == js.y == float(js.timestamp_ms)):
                inconsistent.append(js)

    threads = [threading.Thread(target=writer)] + [
        threading.Thread(target=reader) for _ in range(3)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert inconsistent == []
    assert state.get_joystick().timestamp_ms == 1999