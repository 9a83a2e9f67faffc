"""Background dispatcher: drain, encode and send on a fixed cadence."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from opentelemetry import metrics

from .connection import Connection
from .errors import EncodingInvariantError, TransportError, WriteError
from .queue import SampleQueue
from .wire import DEFAULT_MAX_PAYLOAD, encode, split_batch

logger = logging.getLogger(__name__)


class Dispatcher:
    """Owns the sender thread and the connection it writes through.

    Each cycle connects if needed, drains the queue, encodes the batch and
    writes it frame by frame. Samples from the failed frame onward go back
    on the queue; frames already written count as delivered. The stop
    signal is honoured between cycles; pending samples are not drained on
    stop.
    """

    def __init__(
        self,
        queue: SampleQueue,
        connection: Connection,
        interval: float = 1.0,
        *,
        max_payload: int = DEFAULT_MAX_PAYLOAD,
        meter: Any | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._queue = queue
        self._connection = connection
        self.interval = interval
        self._max_payload = max_payload
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._busy = threading.Event()
        self.fault: BaseException | None = None

        meter = meter or metrics.get_meter("graphite_pusher.dispatcher")
        self._sent = meter.create_counter(
            "graphite_pusher.samples.sent", unit="1",
            description="Samples written to the collector",
        )
        self._requeued = meter.create_counter(
            "graphite_pusher.samples.requeued", unit="1",
            description="Samples returned to the queue after a failed write",
        )
        self._connect_failures = meter.create_counter(
            "graphite_pusher.connect.failures", unit="1",
            description="Failed attempts to reach the collector",
        )
        self._write_failures = meter.create_counter(
            "graphite_pusher.write.failures", unit="1",
            description="Batches whose write failed",
        )

    def run_once(self) -> int:
        """Run one connect/drain/encode/send cycle. Returns samples sent."""
        if not self._connection.connected:
            try:
                self._connection.connect()
            except TransportError as exc:
                self._connect_failures.add(1)
                logger.warning("%s", exc)
                return 0

        if self._queue.is_empty():
            return 0

        # set before draining so an observer never sees an empty queue
        # while a batch is still undelivered
        self._busy.set()
        try:
            batch = self._queue.drain_all()
            # samples covered by frames already written in full
            written = 0
            try:
                for chunk in split_batch(batch, self._max_payload):
                    self._connection.write(encode(chunk))
                    written += len(chunk)
            except WriteError as exc:
                unsent = batch[written:]
                self._queue.enqueue_many(unsent)
                self._write_failures.add(1)
                self._requeued.add(len(unsent))
                self._sent.add(written)
                logger.warning(
                    "%s; %d samples sent, requeued %d", exc, written, len(unsent),
                )
                return written
            except Exception:
                # encoding faults are not retried here; keep the unsent samples
                self._queue.enqueue_many(batch[written:])
                self._sent.add(written)
                raise
        finally:
            self._busy.clear()

        self._sent.add(written)
        logger.debug("Sent %d samples", written)
        return written

    def _run(self) -> None:
        """Background thread loop."""
        try:
            while not self._stop_event.is_set():
                started = time.monotonic()
                self.run_once()
                remaining = self.interval - (time.monotonic() - started)
                if remaining > 0:
                    self._stop_event.wait(remaining)
        except EncodingInvariantError as exc:
            self.fault = exc
            logger.critical("Dispatcher halted: %s", exc)
        except Exception as exc:
            self.fault = exc
            logger.exception("Dispatcher halted")
        finally:
            self._connection.close()

    def start(self) -> None:
        """Start dispatching in the background."""
        if self._thread is not None:
            raise RuntimeError("Dispatcher already started")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="graphite-pusher-dispatcher", daemon=True,
        )
        self._thread.start()
        logger.info("Dispatcher started (interval=%.3fs)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to exit after the current cycle and wait for it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        logger.info("Dispatcher stopped")

    @property
    def busy(self) -> bool:
        """True while a drained batch is being encoded or written."""
        return self._busy.is_set()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
