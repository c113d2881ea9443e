"""Activities: tasks that own the vehicle's operating mode and orchestrate services."""

from __future__ import annotations

import enum
import logging
from typing import Any

from raven.event_bus import NAVIGATION_EVENTS, EventBus, NavigationEventId, default_bus
from raven.messages import NAV_KIND, NavMsg, NetMsg
from raven.navigation_state import JoystickData, NavigationState
from raven.task import BaseTask, TaskConfig, TaskMessage

logger = logging.getLogger(__name__)

# Joystick polling period while in manual mode, in seconds.
MANUAL_TICK_INTERVAL = 0.1


class BaseActivity(BaseTask):
    """A task that holds a mode state machine and drives services."""


class ActivityState(enum.Enum):
    IDLE = "idle"
    WORKING = "working"
    MANUAL = "manual"


class NavigationActivity(BaseActivity):
    """Idle / Working / Manual state machine for navigation.

    A forward move is delegated to the navigation service and completes when
    its ``MOVE_FORWARD_DONE`` event arrives. In manual mode the activity polls
    the navigation state for joystick input on every tick.
    """

    def __init__(
        self,
        nav_service: BaseTask,
        nav_state: NavigationState,
        bus: EventBus | None = None,
    ) -> None:
        super().__init__(TaskConfig("nav_activity", 4096, 5, 8))
        self.nav_service = nav_service
        self.nav_state = nav_state
        self.bus = bus if bus is not None else default_bus()
        self.last_joystick: JoystickData | None = None
        self._state = ActivityState.IDLE

    @property
    def state(self) -> ActivityState:
        return self._state

    def on_start(self) -> None:
        self.bus.subscribe(
            NAVIGATION_EVENTS,
            NavigationEventId.MOVE_FORWARD_DONE,
            NavigationActivity._on_nav_event,
            self,
        )
        logger.info("started, state: Idle")

    def handle_message(self, msg: TaskMessage) -> None:
        handlers = {
            NavMsg.MOVE_FORWARD: self._handle_move_forward,
            NavMsg.MOVE_DONE: self._handle_move_done,
            NetMsg.START_MANUAL_NAV: self._handle_start_manual_nav,
            NetMsg.HALT_MANUAL_NAV: self._handle_halt_manual_nav,
        }
        handler = handlers.get(msg.id)
        if handler is not None:
            handler()

    def on_tick(self) -> None:
        js = self.nav_state.get_joystick()
        self.last_joystick = js
        logger.info(
            "manual tick: joystick x=%.3f y=%.3f ts=%d", js.x, js.y, js.timestamp_ms
        )

    def _handle_start_manual_nav(self) -> None:
        if self._state is not ActivityState.IDLE:
            logger.warning("start manual ignored: not Idle")
            return
        self._state = ActivityState.MANUAL
        self.set_tick_interval(MANUAL_TICK_INTERVAL)
        logger.info(
            "state Idle -> Manual (polling every %d ms)", int(MANUAL_TICK_INTERVAL * 1000)
        )

    def _handle_halt_manual_nav(self) -> None:
        if self._state is not ActivityState.MANUAL:
            logger.warning("halt manual ignored: not Manual")
            return
        self._state = ActivityState.IDLE
        self.set_tick_interval(0)
        logger.info("state Manual -> Idle")

    def _handle_move_forward(self) -> None:
        if self._state is not ActivityState.IDLE:
            logger.warning("move forward ignored: not Idle")
            return
        logger.info("move forward: Idle -> Working")
        self._state = ActivityState.WORKING
        self.nav_service.post_message(TaskMessage(NAV_KIND, NavMsg.MOVE_FORWARD))

    def _handle_move_done(self) -> None:
        logger.info("move done: Working -> Idle")
        self._state = ActivityState.IDLE

    @staticmethod
    def _on_nav_event(ctx: Any, base: str, event_id: int, data: bytes | None) -> None:
        # Thin callback: only turn the event into a message for the activity's own thread.
        ctx.post_message(TaskMessage(NAV_KIND, NavMsg.MOVE_DONE))