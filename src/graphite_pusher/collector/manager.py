"""Periodic system-resource sampling into a :class:`Pusher`."""

from __future__ import annotations

import logging
import threading
import time

from ..config import CollectorConfig
from ..pusher import Pusher
from ..sample import Sample, current_timestamp
from .base import BaseCollector
from .cpu import CpuCollector
from .memory import MemoryCollector
from .network import NetworkCollector

logger = logging.getLogger(__name__)


def build_collectors(config: CollectorConfig) -> list[BaseCollector]:
    """Instantiate the collectors enabled in *config*, sharing its prefix."""
    collectors: list[BaseCollector] = []
    if config.cpu:
        collectors.append(CpuCollector(config.prefix))
    if config.memory:
        collectors.append(MemoryCollector(config.prefix))
    if config.network:
        collectors.append(NetworkCollector(config.prefix, interface=config.network_interface))
    return collectors


class CollectorManager:
    """Samples every enabled collector and submits the results to a pusher.

    All samples of one tick share a single timestamp, so a Graphite render of
    ``system.cpu.*`` and ``system.memory.*`` lines up on the same points.
    Ticks are scheduled on a fixed grid; a tick that overruns the interval
    skips the ticks it missed instead of bursting to catch up.
    """

    def __init__(self, config: CollectorConfig, pusher: Pusher) -> None:
        self._config = config
        self._pusher = pusher
        self._collectors = build_collectors(config)
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def collectors(self) -> list[BaseCollector]:
        return list(self._collectors)

    def collect_once(self, timestamp: int | None = None) -> list[Sample]:
        """Read all collectors at one timestamp. A failing collector is skipped."""
        if timestamp is None:
            timestamp = current_timestamp()
        samples: list[Sample] = []
        for collector in self._collectors:
            try:
                samples.extend(collector.collect(timestamp))
            except Exception:
                logger.exception("Collector %s failed", collector.name)
        return samples

    def push_once(self) -> int:
        """Collect one tick and queue it on the pusher. Returns samples queued."""
        samples = self.collect_once()
        self._pusher.submit_many(samples)
        logger.debug("Queued %d samples (%d pending)", len(samples), self._pusher.pending)
        return len(samples)

    def _run(self) -> None:
        interval = self._config.interval_seconds
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            self.push_once()
            next_tick += interval
            now = time.monotonic()
            if next_tick < now:
                missed = int((now - next_tick) // interval) + 1
                logger.warning("Collection overran its interval; skipping %d ticks", missed)
                next_tick += missed * interval
            self._stop_event.wait(next_tick - now)

    def start(self) -> None:
        if not self._config.enabled:
            logger.info("Resource collection disabled")
            return
        if self._thread is not None:
            raise RuntimeError("CollectorManager already started")
        self._thread = threading.Thread(target=self._run, name="graphite-pusher-collector", daemon=True)
        self._thread.start()
        logger.info(
            "Collecting %s every %.1fs",
            ", ".join(c.name for c in self._collectors) or "nothing",
            self._config.interval_seconds,
        )

    def stop(self) -> None:
        """Stop sampling; samples already queued stay with the pusher."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
