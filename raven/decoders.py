"""Wire header, payload decoders and the registry that maps message ids to them."""

from __future__ import annotations

import abc
import struct
from dataclasses import dataclass
from typing import ClassVar

_HEADER = struct.Struct("<HI")


class DecodeError(ValueError):
    """A payload did not pass its decoder's validation."""


@dataclass(frozen=True)
class NetworkHeader:
    """Six-byte packed header: little-endian u16 msg_id, u32 payload_size."""

    SIZE: ClassVar[int] = _HEADER.size

    msg_id: int
    payload_size: int

    def __post_init__(self) -> None:
        if not 0 <= self.msg_id <= 0xFFFF:
            raise ValueError("msg_id must fit in 16 bits")
        if not 0 <= self.payload_size <= 0xFFFFFFFF:
            raise ValueError("payload_size must fit in 32 bits")

    def pack(self) -> bytes:
        return _HEADER.pack(self.msg_id, self.payload_size)

    @classmethod
    def unpack(cls, data: bytes) -> NetworkHeader:
        if len(data) != cls.SIZE:
            raise ValueError(f"header must be {cls.SIZE} bytes, got {len(data)}")
        msg_id, payload_size = _HEADER.unpack(data)
        return cls(msg_id, payload_size)


@dataclass(frozen=True)
class DecodedMessage:
    """A validated message ready to be routed."""

    kind: int
    id: int
    payload: bytes
    payload_size: int


class Decoder(abc.ABC):
    """Validates a payload against its header and tags it with a message kind."""

    @abc.abstractmethod
    def decode(self, header: NetworkHeader, payload: bytes | None) -> DecodedMessage:
        """Return the decoded message or raise DecodeError."""


def _decoded(kind: int, header: NetworkHeader, payload: bytes | None) -> DecodedMessage:
    return DecodedMessage(
        kind=kind,
        id=header.msg_id,
        payload=bytes(payload) if payload else b"",
        payload_size=header.payload_size,
    )


class FixedSizeDecoder(Decoder):
    """Accepts payloads of exactly one size, such as packed structs."""

    def __init__(self, kind: int, expected_size: int) -> None:
        self.kind = kind
        self.expected_size = expected_size

    def decode(self, header: NetworkHeader, payload: bytes | None) -> DecodedMessage:
        if header.payload_size != self.expected_size:
            raise DecodeError(
                f"payload of {header.payload_size} bytes, expected {self.expected_size}"
            )
        return _decoded(self.kind, header, payload)


class VariableSizeDecoder(Decoder):
    """Accepts payloads whose size lies within an inclusive range."""

    def __init__(self, kind: int, min_size: int, max_size: int) -> None:
        if min_size > max_size:
            raise ValueError("min_size must not exceed max_size")
        self.kind = kind
        self.min_size = min_size
        self.max_size = max_size

    def decode(self, header: NetworkHeader, payload: bytes | None) -> DecodedMessage:
        if not self.min_size <= header.payload_size <= self.max_size:
            raise DecodeError(
                f"payload of {header.payload_size} bytes outside "
                f"[{self.min_size}, {self.max_size}]"
            )
        return _decoded(self.kind, header, payload)


class DecoderRegistry:
    """Maps network message ids to decoders; each id may be registered once."""

    def __init__(self) -> None:
        self._decoders: dict[int, Decoder] = {}

    def register_decoder(self, msg_id: int, decoder: Decoder) -> None:
        if decoder is None:
            raise TypeError("decoder must not be None")
        if msg_id in self._decoders:
            raise ValueError(f"decoder for message id {msg_id:#06x} already registered")
        self._decoders[msg_id] = decoder

    def find(self, msg_id: int) -> Decoder | None:
        return self._decoders.get(msg_id)

    def __contains__(self, msg_id: object) -> bool:
        return msg_id in self._decoders

    def __len__(self) -> int:
        return len(self._decoders)