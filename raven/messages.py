"""Message ids, kinds and payload layouts of the navigation and pilot domain."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

_U32_MAX = 0xFFFFFFFF

# Message kind shared by navigation directed messages and self-messages.
NAV_KIND = 0x0010


class NavMsg(IntEnum):
    """Message ids within the navigation kind."""

    MOVE_FORWARD = 0x0001  # directed to NavigationService: execute a forward move
    MOVE_DONE = 0x0002  # self-message to NavigationActivity: the service completed


class NetMsg(IntEnum):
    """Network message ids carried in the wire header."""

    JOYSTICK_INPUT = 0x1001
    START_MANUAL_NAV = 0x1002
    HALT_MANUAL_NAV = 0x1003
    LLM_RESPONSE_TEXT = 0x2001


class MsgKind(IntEnum):
    """Kinds that decoders stamp on messages coming from the network."""

    PILOT_INPUT = 0x0100
    NAV_CMD = 0x0200
    LLM_DATA = 0x0300


def _check_timestamp(timestamp_ms: int) -> None:
    if not 0 <= timestamp_ms <= _U32_MAX:
        raise ValueError("timestamp_ms must fit in 32 bits")


def _check_length(name: str, data: bytes, size: int) -> None:
    if len(data) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(data)}")


_JOYSTICK = struct.Struct("<ffI")
_TIMESTAMP = struct.Struct("<I")


@dataclass(frozen=True)
class JoystickPayload:
    """Joystick sample: little-endian float32 x, float32 y, u32 timestamp in ms."""

    SIZE: ClassVar[int] = _JOYSTICK.size

    x: float
    y: float
    timestamp_ms: int

    def __post_init__(self) -> None:
        _check_timestamp(self.timestamp_ms)

    def pack(self) -> bytes:
        return _JOYSTICK.pack(self.x, self.y, self.timestamp_ms)

    @classmethod
    def unpack(cls, data: bytes) -> JoystickPayload:
        _check_length("joystick payload", data, cls.SIZE)
        x, y, timestamp_ms = _JOYSTICK.unpack(data)
        return cls(x, y, timestamp_ms)


@dataclass(frozen=True)
class StartManualPayload:
    """Request to enter manual navigation: u32 timestamp in ms."""

    SIZE: ClassVar[int] = _TIMESTAMP.size

    timestamp_ms: int

    def __post_init__(self) -> None:
        _check_timestamp(self.timestamp_ms)

    def pack(self) -> bytes:
        return _TIMESTAMP.pack(self.timestamp_ms)

    @classmethod
    def unpack(cls, data: bytes) -> StartManualPayload:
        _check_length("start-manual payload", data, cls.SIZE)
        (timestamp_ms,) = _TIMESTAMP.unpack(data)
        return cls(timestamp_ms)


@dataclass(frozen=True)
class HaltManualPayload:
    """Request to leave manual navigation: u32 timestamp in ms."""

    SIZE: ClassVar[int] = _TIMESTAMP.size

    timestamp_ms: int

    def __post_init__(self) -> None:
        _check_timestamp(self.timestamp_ms)

    def pack(self) -> bytes:
        return _TIMESTAMP.pack(self.timestamp_ms)

    @classmethod
    def unpack(cls, data: bytes) -> HaltManualPayload:
        _check_length("halt-manual payload", data, cls.SIZE)
        (timestamp_ms,) = _TIMESTAMP.unpack(data)
        return cls(timestamp_ms)