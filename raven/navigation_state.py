"""Shared navigation state written by services and read by activities."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class JoystickData:
    """Snapshot of the latest joystick input."""

    x: float = 0.0
    y: float = 0.0
    timestamp_ms: int = 0


class NavigationState:
    """Position truth plus the latest joystick snapshot.

    ``x``, ``y`` and ``z`` are plain attributes, each read and written whole.
    The joystick triple is guarded by a lock so readers see a consistent snapshot.
    """

    def __init__(self) -> None:
        self.x = 0.0
        self.y = 0.0
        self.z = 0.0
        self._joystick_lock = threading.Lock()
        self._joystick = JoystickData()

    def set_joystick(self, x: float, y: float, timestamp_ms: int) -> None:
        """Store all three joystick fields together."""
        snapshot = JoystickData(float(x), float(y), int(timestamp_ms))
        with self._joystick_lock:
            self._joystick = snapshot

    def get_joystick(self) -> JoystickData:
        """Return a consistent joystick snapshot."""
        with self._joystick_lock:
            return self._joystick