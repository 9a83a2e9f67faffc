"""Shared fixtures: an in-process carbon pickle receiver on loopback."""

from __future__ import annotations

import socket
import threading
import time

import pytest

from graphite_pusher.sample import Sample
from graphite_pusher.wire import HEADER_SIZE, decode_header, decode_payload


def _recv_exactly(conn: socket.socket, size: int) -> bytes | None:
    chunks = []
    while size:
        chunk = conn.recv(size)
        if not chunk:
            return None
        chunks.append(chunk)
        size -= len(chunk)
    return b"".join(chunks)


class FakeCarbon:
    """Accepts connections and decodes every frame it receives."""

    def __init__(self) -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen()
        self.host, self.port = self._listener.getsockname()
        self.samples: list[Sample] = []
        self.frames = 0
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def _accept_loop(self) -> None:
        while not self._closed:
            try:
                conn, _addr = self._listener.accept()
            except OSError:
                return
            threading.Thread(target=self._serve, args=(conn,), daemon=True).start()

    def _serve(self, conn: socket.socket) -> None:
        with conn:
            while True:
                header = _recv_exactly(conn, HEADER_SIZE)
                if header is None:
                    return
                payload = _recv_exactly(conn, decode_header(header))
                if payload is None:
                    return
                samples = decode_payload(payload)
                with self._lock:
                    self.samples.extend(samples)
                    self.frames += 1

    def received(self) -> list[Sample]:
        with self._lock:
            return list(self.samples)

    def wait_for(self, count: int, timeout: float = 5.0) -> list[Sample]:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            received = self.received()
            if len(received) >= count:
                return received
            time.sleep(0.02)
        return self.received()

    def close(self) -> None:
        self._closed = True
        self._listener.close()


@pytest.fixture
def carbon_server():
    server = FakeCarbon()
    try:
        yield server
    finally:
        server.close()


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
