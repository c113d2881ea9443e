"""Network gateway: reads framed packets from links, decodes them and routes them to tasks."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from raven.decoders import DecodedMessage, DecodeError, Decoder, DecoderRegistry, NetworkHeader
from raven.links import Link, Server
from raven.task import BaseTask, TaskMessage

logger = logging.getLogger(__name__)

# Pause between accept attempts when no peer is waiting, in seconds.
_IDLE_DELAY = 0.05


@dataclass(frozen=True)
class GatewayConfig:
    """Settings of the gateway thread and the largest payload it accepts."""

    name: str = "network_gateway"
    stack_size: int = 4096
    priority: int = 5
    max_payload_size: int = 4096

    def __post_init__(self) -> None:
        if self.max_payload_size < 0:
            raise ValueError("max_payload_size must not be negative")


class NetworkGateway:
    """Accepts peers from a server and turns their packets into task messages.

    Each packet is a :class:`NetworkHeader` followed by ``payload_size`` bytes.
    A packet is decoded by the decoder registered for its message id and then
    posted to the task routed for the decoded id. Unknown ids, payloads that
    fail to decode and packets without a route are dropped; an oversized or
    truncated packet closes the link.
    """

    def __init__(self, server: Server, config: GatewayConfig | None = None) -> None:
        self.server = server
        self.config = config if config is not None else GatewayConfig()
        self._decoders = DecoderRegistry()
        self._routes: dict[int, BaseTask] = {}
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        self._link_lock = threading.Lock()
        self._link: Link | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Spawn the gateway thread. Raises RuntimeError if already started."""
        if self._thread is not None:
            raise RuntimeError("gateway already started")
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name=self.config.name, daemon=True
        )
        self._thread.start()
        logger.info("gateway thread created")

    def stop(self) -> None:
        """Stop serving, stop the server and close the current link."""
        logger.info("gateway stopping")
        self._stop.set()
        self.server.stop()
        with self._link_lock:
            link = self._link
        if link is not None:
            link.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def register_route(self, msg_id: int, target: BaseTask) -> None:
        """Route decoded messages with ``msg_id`` to ``target``; each id once."""
        if target is None:
            raise TypeError("target must not be None")
        if msg_id in self._routes:
            raise ValueError(f"route for message id {msg_id:#06x} already registered")
        self._routes[msg_id] = target

    def register_decoder(self, msg_id: int, decoder: Decoder) -> None:
        """Decode packets carrying ``msg_id`` with ``decoder``; each id once."""
        self._decoders.register_decoder(msg_id, decoder)

    def serve_link(self, link: Link) -> int:
        """Process packets from ``link`` until it closes or the gateway stops.

        The link is closed on return. Returns how many messages were delivered.
        """
        with self._link_lock:
            self._link = link
        delivered = 0
        try:
            while not self._stop.is_set() and link.is_open():
                raw = self._read_exact(link, NetworkHeader.SIZE)
                if raw is None:
                    logger.info("header read failed")
                    break
                header = NetworkHeader.unpack(raw)

                if header.payload_size > self.config.max_payload_size:
                    logger.info("payload size %d too large", header.payload_size)
                    break

                payload: bytes | None = None
                if header.payload_size > 0:
                    payload = self._read_exact(link, header.payload_size)
                    if payload is None:
                        logger.info("payload read failed")
                        break

                decoder = self._decoders.find(header.msg_id)
                if decoder is None:
                    logger.info("unknown message id %#06x", header.msg_id)
                    continue

                try:
                    decoded = decoder.decode(header, payload)
                except DecodeError as exc:
                    logger.info("payload not decoded: %s", exc)
                    continue

                target = self._routes.get(decoded.id)
                if target is None:
                    logger.info("no route for message id %#06x", decoded.id)
                    continue

                if self._dispatch(target, decoded):
                    delivered += 1
        finally:
            link.close()
            with self._link_lock:
                if self._link is link:
                    self._link = None
        return delivered

    @staticmethod
    def _read_exact(link: Link, size: int) -> bytes | None:
        chunks = bytearray()
        while len(chunks) < size:
            try:
                chunk = link.read(size - len(chunks))
            except OSError:
                return None
            if not chunk:
                return None
            chunks += chunk
        return bytes(chunks)

    @staticmethod
    def _dispatch(target: BaseTask, decoded: DecodedMessage) -> bool:
        msg = TaskMessage(decoded.kind, decoded.id, decoded.payload, decoded.payload_size)
        try:
            sent = target.post_message(msg)
        except RuntimeError as exc:
            logger.warning("message %#06x dropped: %s", decoded.id, exc)
            return False
        if not sent:
            logger.info("message %#06x dropped: queue full", decoded.id)
        return sent

    def _run(self) -> None:
        logger.info("gateway run started")
        if not self.server.is_running():
            try:
                self.server.start()
            except OSError as exc:
                logger.error("server failed to start: %s", exc)
                return
            logger.info("server listening")

        while not self._stop.is_set():
            link = self.server.accept_connection()
            if link is None:
                self._stop.wait(_IDLE_DELAY)
                continue
            self.serve_link(link)
        logger.info("gateway run ended")