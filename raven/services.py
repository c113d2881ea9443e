"""Services: worker tasks that execute commands and write into shared state."""

from __future__ import annotations

import logging

from raven.event_bus import NAVIGATION_EVENTS, EventBus, NavigationEventId, default_bus
from raven.messages import NAV_KIND, JoystickPayload, NavMsg, NetMsg
from raven.navigation_state import NavigationState
from raven.task import BaseTask, TaskConfig, TaskMessage

logger = logging.getLogger(__name__)


class BaseService(BaseTask):
    """A task that serves one subsystem and reports results through shared state."""


class NavigationService(BaseService):
    """Stub executor of navigation commands.

    A forward move advances ``state.x`` by one unit and then publishes
    ``MOVE_FORWARD_DONE`` on the event bus.
    """

    def __init__(self, state: NavigationState, bus: EventBus | None = None) -> None:
        super().__init__(TaskConfig("nav_service", 2048, 5, 8))
        self.state = state
        self.bus = bus if bus is not None else default_bus()

    def handle_message(self, msg: TaskMessage) -> None:
        if msg.kind == NAV_KIND and msg.id == NavMsg.MOVE_FORWARD:
            self._move_forward()

    def _move_forward(self) -> None:
        # This service is the only writer of the position, so the update is not lost.
        self.state.x = self.state.x + 1.0
        logger.info(
            "move_forward: position x=%.1f y=%.1f z=%.1f",
            self.state.x,
            self.state.y,
            self.state.z,
        )
        self.bus.post(NAVIGATION_EVENTS, NavigationEventId.MOVE_FORWARD_DONE)


class PilotInputService(BaseService):
    """Receives joystick input and stores the latest sample in the navigation state."""

    def __init__(self, state: NavigationState) -> None:
        super().__init__(TaskConfig("pilot_input", 2048, 5, 8))
        self.state = state

    def handle_message(self, msg: TaskMessage) -> None:
        if msg.id != NetMsg.JOYSTICK_INPUT:
            return
        size = msg.payload_size or 0
        if msg.data is None or size < JoystickPayload.SIZE:
            logger.warning(
                "JOYSTICK_INPUT: invalid payload (size=%d)",
                0 if msg.data is None else size,
            )
            return
        js = JoystickPayload.unpack(bytes(msg.data[: JoystickPayload.SIZE]))
        self.state.set_joystick(js.x, js.y, js.timestamp_ms)
        logger.info(
            "joystick update: x=%.3f y=%.3f ts=%d", js.x, js.y, js.timestamp_ms
        )