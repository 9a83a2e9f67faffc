"""Public façade: submit samples, run the dispatcher."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable

from .config import PusherConfig
from .connection import Connection
from .dispatcher import Dispatcher
from .queue import SampleQueue
from .sample import Sample, current_timestamp

logger = logging.getLogger(__name__)


class Pusher:
    """Asynchronous client for a carbon pickle receiver.

    Usage::

        pusher = Pusher("localhost", 2004)
        pusher.start()
        pusher.submit("app.requests", 12.0)
        pusher.submit("app.latency", 1700000000, 0.25)
        pusher.flush_and_stop()

    :meth:`submit` only appends to an in-memory queue and never fails
    because of the collector's state. Delivery happens on a background
    thread every ``60 / frequency`` seconds.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 2004,
        frequency: float = 60.0,
        *,
        connect_timeout: float | None = 10.0,
        max_frame_bytes: int = 1 << 20,
        meter: Any | None = None,
    ) -> None:
        self._config = PusherConfig(
            host=host,
            port=port,
            frequency=frequency,
            connect_timeout=connect_timeout,
            max_frame_bytes=max_frame_bytes,
        )
        self._config.validate()
        self._queue = SampleQueue()
        self._meter = meter
        self._dispatcher: Dispatcher | None = None

    @classmethod
    def from_config(cls, config: PusherConfig, **kwargs: Any) -> "Pusher":
        return cls(
            config.host,
            config.port,
            config.frequency,
            connect_timeout=config.connect_timeout,
            max_frame_bytes=config.max_frame_bytes,
            **kwargs,
        )

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def frequency(self) -> float:
        return self._config.frequency

    @property
    def pending(self) -> int:
        """Number of samples waiting in the queue."""
        return len(self._queue)

    def set_frequency(self, frequency: float) -> None:
        """Set flush cycles per minute. Only allowed before :meth:`start`."""
        if self._dispatcher is not None:
            raise RuntimeError("frequency cannot change after start()")
        if frequency <= 0:
            raise ValueError(f"frequency must be positive, got {frequency}")
        self._config.frequency = frequency

    def submit(self, path: str, *args: float) -> None:
        """Queue a sample.

        ``submit(path, value)`` stamps it with the current time;
        ``submit(path, timestamp, value)`` uses the given epoch seconds.
        """
        if len(args) == 1:
            timestamp, value = current_timestamp(), args[0]
        elif len(args) == 2:
            timestamp, value = args
        else:
            raise TypeError(
                f"submit() takes (path, value) or (path, timestamp, value), got {len(args) + 1} arguments"
            )
        self._queue.enqueue(Sample(path, timestamp, value))

    def submit_many(self, samples: Iterable[Sample]) -> None:
        """Queue prebuilt samples, keeping their order."""
        self._queue.enqueue_many(samples)

    def start(self) -> None:
        """Start the background dispatcher. May be called once per instance."""
        if self._dispatcher is not None:
            raise RuntimeError("Pusher already started")
        connection = Connection(
            self._config.host, self._config.port, timeout=self._config.connect_timeout,
        )
        self._dispatcher = Dispatcher(
            self._queue,
            connection,
            interval=60.0 / self._config.frequency,
            max_payload=self._config.max_frame_bytes,
            meter=self._meter,
        )
        self._dispatcher.start()
        logger.info(
            "Pusher started → %s:%d (frequency=%g/min)",
            self._config.host, self._config.port, self._config.frequency,
        )

    def stop(self) -> None:
        """Stop dispatching without draining the queue."""
        if self._dispatcher is not None:
            self._dispatcher.stop()

    def flush_and_stop(self, poll_interval: float = 0.1, timeout: float | None = None) -> bool:
        """Block until the queue is observed empty, then stop.

        Returns ``False`` if *timeout* elapsed or the dispatcher died first;
        the dispatcher is stopped either way.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        flushed = True
        while not self._queue.is_empty() or (self._dispatcher is not None and self._dispatcher.busy):
            if self._dispatcher is None or not self._dispatcher.is_alive():
                logger.error("Dispatcher not running; %d samples left unsent", self.pending)
                flushed = False
                break
            if deadline is not None and time.monotonic() >= deadline:
                logger.warning("Flush timed out; %d samples left unsent", self.pending)
                flushed = False
                break
            time.sleep(poll_interval)
        self.stop()
        return flushed

    def __enter__(self) -> "Pusher":
        self.start()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        if exc_type is None:
            self.flush_and_stop()
        else:
            self.stop()
