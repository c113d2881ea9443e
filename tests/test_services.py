import time

import pytest

from raven.event_bus import NAVIGATION_EVENTS, EventBus, NavigationEventId, default_bus
from raven.messages import NAV_KIND, JoystickPayload, MsgKind, NavMsg, NetMsg
from raven.navigation_state import JoystickData, NavigationState
from raven.services import NavigationService, PilotInputService
from raven.task import TaskMessage


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def state():
    return NavigationState()


def _recorder(bus):
    received = []

    def handler(ctx, base, event_id, data):
        received.append((ctx, base, event_id, data))

    bus.subscribe(NAVIGATION_EVENTS, NavigationEventId.MOVE_FORWARD_DONE, handler, "ctx")
    return received


def test_navigation_service_config():
    service = NavigationService(NavigationState(), EventBus())
    assert service.config.name == "nav_service"
    assert service.config.stack_size == 2048
    assert service.config.priority == 5
    assert service.config.queue_length == 8


def test_navigation_service_uses_default_bus():
    service = NavigationService(NavigationState())
    assert service.bus is default_bus()


def test_move_forward_advances_x(state, bus):
    service = NavigationService(state, bus)
    service.handle_message(TaskMessage(NAV_KIND, NavMsg.MOVE_FORWARD))
    assert state.x == 1.0
    assert (state.y, state.z) == (0.0, 0.0)


def test_move_forward_publishes_completion(state, bus):
    received = _recorder(bus)
    service = NavigationService(state, bus)
    service.handle_message(TaskMessage(NAV_KIND, NavMsg.MOVE_FORWARD))
    assert received == [
        ("ctx", NAVIGATION_EVENTS, NavigationEventId.MOVE_FORWARD_DONE, None)
    ]


@pytest.mark.parametrize(
    "msg",
    [
        TaskMessage(MsgKind.NAV_CMD, NavMsg.MOVE_FORWARD),
        TaskMessage(NAV_KIND, NavMsg.MOVE_DONE),
    ],
)
def test_navigation_service_ignores_other_messages(state, bus, msg):
    received = _recorder(bus)
    NavigationService(state, bus).handle_message(msg)
    assert state.x == 0.0
    assert received == []


def test_navigation_service_in_thread(state, bus):
    received = _recorder(bus)
    with NavigationService(state, bus) as service:
        assert service.post_message(TaskMessage(NAV_KIND, NavMsg.MOVE_FORWARD))
        assert _wait_for(lambda: len(received) == 1)
    assert state.x == 1.0


def test_pilot_input_service_config():
    service = PilotInputService(NavigationState())
    assert service.config.name == "pilot_input"
    assert service.config.queue_length == 8


def test_pilot_input_updates_joystick(state):
    payload = JoystickPayload(0.5, -0.25, 1000)
    PilotInputService(state).handle_message(
        TaskMessage(MsgKind.PILOT_INPUT, NetMsg.JOYSTICK_INPUT, payload.pack())
    )
    assert state.get_joystick() == JoystickData(0.5, -0.25, 1000)


def test_pilot_input_accepts_longer_payload(state):
    data = JoystickPayload(1.0, 0.75, 7).pack() + b"\xff\xff"
    PilotInputService(state).handle_message(
        TaskMessage(MsgKind.PILOT_INPUT, NetMsg.JOYSTICK_INPUT, data)
    )
    assert state.get_joystick() == JoystickData(1.0, 0.75, 7)


@pytest.mark.parametrize(
    "msg",
    [
        TaskMessage(MsgKind.PILOT_INPUT, NetMsg.START_MANUAL_NAV,
                    JoystickPayload(0.5, 0.5, 3).pack()),
        TaskMessage(MsgKind.PILOT_INPUT, NetMsg.JOYSTICK_INPUT, b"\x00" * 4),
        TaskMessage(MsgKind.PILOT_INPUT, NetMsg.JOYSTICK_INPUT),
    ],
)
def test_pilot_input_ignores_invalid_messages(state, msg):
    PilotInputService(state).handle_message(msg)
    assert state.get_joystick() == JoystickData()


def test_pilot_input_in_thread(state):
    payload = JoystickPayload(-0.5, 0.25, 99)
    with PilotInputService(state) as service:
        assert service.post_message(
            TaskMessage(MsgKind.PILOT_INPUT, NetMsg.JOYSTICK_INPUT, payload.pack())
        )
        assert _wait_for(lambda: state.get_joystick() == JoystickData(-0.5, 0.25, 99))