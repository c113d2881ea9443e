"""Byte-stream links and a TCP listening server."""

from __future__ import annotations

import abc
import ipaddress
import socket

# How long accept_connection() blocks before giving the caller a chance to re-check state.
_ACCEPT_POLL = 0.25


class Link(abc.ABC):
    """A bidirectional byte stream."""

    @abc.abstractmethod
    def open(self) -> None:
        """Make the link ready for use; raise OSError if that is impossible."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the link; closing a closed link does nothing."""

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Send some of ``data`` and return how many bytes went out."""

    @abc.abstractmethod
    def read(self, size: int) -> bytes:
        """Receive up to ``size`` bytes; empty bytes mean the peer closed."""

    @abc.abstractmethod
    def is_open(self) -> bool:
        """True while the link holds a usable connection."""

    def __enter__(self) -> Link:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Server(abc.ABC):
    """Something that listens and hands out links to incoming peers."""

    @abc.abstractmethod
    def start(self) -> None:
        """Begin listening; raise OSError if that is impossible."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Stop listening."""

    @abc.abstractmethod
    def accept_connection(self) -> Link | None:
        """Return a link to the next peer, or None if none arrived."""

    @abc.abstractmethod
    def is_running(self) -> bool:
        """True while the server is listening."""

    def __enter__(self) -> Server:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def _shutdown_and_close(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    sock.close()


def _check_write(data: bytes) -> None:
    if not data:
        raise ValueError("nothing to write")


def _check_read(size: int) -> None:
    if size <= 0:
        raise ValueError("read size must be positive")


class _SocketLink(Link):
    """Shared behaviour of links backed by a connected socket."""

    _sock: socket.socket | None

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            _shutdown_and_close(sock)

    def write(self, data: bytes) -> int:
        _check_write(data)
        return self._connected().send(data)

    def read(self, size: int) -> bytes:
        _check_read(size)
        return self._connected().recv(size)

    def is_open(self) -> bool:
        return self._sock is not None

    def _connected(self) -> socket.socket:
        sock = self._sock
        if sock is None:
            raise ConnectionError("link is not open")
        return sock


class TcpClientLink(_SocketLink):
    """Outgoing IPv4 TCP connection to ``host``:``port``.

    ``host`` may be a dotted IPv4 address or a name resolved through DNS.
    """

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self._sock = None

    def open(self) -> None:
        """Connect; does nothing if already connected."""
        if self.is_open():
            return
        if not self.host:
            raise ValueError("host must not be empty")

        try:
            addresses = [str(ipaddress.IPv4Address(self.host))]
        except ValueError:
            infos = socket.getaddrinfo(
                self.host, None, socket.AF_INET, socket.SOCK_STREAM
            )
            addresses = [info[4][0] for info in infos if info[0] == socket.AF_INET]

        last_error: OSError | None = None
        for address in addresses:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            try:
                sock.connect((address, self.port))
            except OSError as exc:
                sock.close()
                last_error = exc
                continue
            self._sock = sock
            return

        if last_error is not None:
            raise last_error
        raise OSError(f"no IPv4 address found for {self.host!r}")

    def close(self) -> None:
        super().close()

    def write(self, data: bytes) -> int:
        return super().write(data)

    def read(self, size: int) -> bytes:
        return super().read(size)

    def is_open(self) -> bool:
        return super().is_open()


class TcpSessionLink(_SocketLink):
    """Link over a socket already accepted by a server."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def open(self) -> None:
        """An accepted session cannot be reopened once closed."""
        if not self.is_open():
            raise ConnectionError("session is closed")

    def close(self) -> None:
        super().close()

    def write(self, data: bytes) -> int:
        return super().write(data)

    def read(self, size: int) -> bytes:
        return super().read(size)

    def is_open(self) -> bool:
        return super().is_open()


class TcpServer(Server):
    """IPv4 TCP server listening on all interfaces with a backlog of one."""

    def __init__(self, port: int) -> None:
        self._port = port
        self._sock: socket.socket | None = None

    @property
    def port(self) -> int:
        """The bound port while listening, else the configured one."""
        sock = self._sock
        if sock is not None:
            return sock.getsockname()[1]
        return self._port

    def start(self) -> None:
        """Bind and listen; does nothing if already listening."""
        if self._sock is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", self._port))
            sock.listen(1)
            sock.settimeout(_ACCEPT_POLL)
        except OSError:
            sock.close()
            raise
        self._sock = sock

    def stop(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            _shutdown_and_close(sock)

    def accept_connection(self) -> TcpSessionLink | None:
        """Wait briefly for a peer; None when not listening or nobody connected."""
        sock = self._sock
        if sock is None:
            return None
        try:
            conn, _addr = sock.accept()
        except OSError:
            return None
        conn.settimeout(None)
        return TcpSessionLink(conn)

    def is_running(self) -> bool:
        return self._sock is not None

    def __del__(self) -> None:
        sock = getattr(self, "_sock", None)
        if sock is not None:
            sock.close()