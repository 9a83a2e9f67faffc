"""TCP connection to the carbon collector."""

from __future__ import annotations

import enum
import logging
import socket

from .errors import ConnectError, ResolutionError, WriteError

logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    FAILED = "failed"


class Connection:
    """A single byte stream to ``host:port``, reopened on demand.

    Owned exclusively by the dispatcher thread, so no locking is done here.
    """

    def __init__(self, host: str, port: int, timeout: float | None = 10.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.state = ConnectionState.DISCONNECTED
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def connect(self) -> None:
        """Resolve the destination and connect to the first address that accepts.

        Raises :class:`ResolutionError` or :class:`ConnectError`; the state
        stays ``DISCONNECTED`` in both cases.
        """
        if self.connected:
            return
        try:
            addrs = socket.getaddrinfo(
                self.host, self.port, socket.AF_UNSPEC, socket.SOCK_STREAM, socket.IPPROTO_TCP,
            )
        except socket.gaierror as exc:
            raise ResolutionError(f"cannot resolve {self.host}:{self.port}: {exc}") from exc

        last_error: OSError | None = None
        for family, socktype, proto, _canonname, sockaddr in addrs:
            try:
                sock = socket.socket(family, socktype, proto)
            except OSError as exc:
                last_error = exc
                continue
            try:
                sock.settimeout(self.timeout)
                sock.connect(sockaddr)
            except OSError as exc:
                last_error = exc
                sock.close()
                continue
            # the timeout only bounds connect; writes block like a plain stream
            sock.settimeout(None)
            self._sock = sock
            self.state = ConnectionState.CONNECTED
            logger.info("Connected to %s:%d (%s)", self.host, self.port, sockaddr[0])
            return

        raise ConnectError(
            f"no address for {self.host}:{self.port} accepted a connection: {last_error}"
        ) from last_error

    def write(self, data: bytes) -> None:
        """Send *data* in full. On failure the socket is torn down and
        :class:`WriteError` is raised."""
        if self._sock is None:
            raise WriteError(f"not connected to {self.host}:{self.port}")
        try:
            self._sock.sendall(data)
        except OSError as exc:
            self.state = ConnectionState.FAILED
            self.close()
            raise WriteError(f"send to {self.host}:{self.port} failed: {exc}") from exc

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                logger.debug("Error closing socket", exc_info=True)
            self._sock = None
        self.state = ConnectionState.DISCONNECTED
