"""Network resource collector."""

from __future__ import annotations

import time

import psutil

from ..sample import Sample
from .base import BaseCollector, path_component


class NetworkCollector(BaseCollector):
    """Collects network I/O totals and, from the second call on, rates."""

    def __init__(self, prefix: str = "system", interface: str = "") -> None:
        super().__init__(prefix)
        self._interface = interface
        self._prev_counters: dict[str, tuple[int, int]] | None = None
        self._prev_time: float | None = None

    @property
    def name(self) -> str:
        return "network"

    def collect(self, timestamp: int) -> list[Sample]:
        # rates use the monotonic clock; samples carry the cycle timestamp
        now = time.monotonic()
        samples: list[Sample] = []

        counters = psutil.net_io_counters(pernic=True)
        interfaces = [self._interface] if self._interface and self._interface in counters else list(counters.keys())

        current: dict[str, tuple[int, int]] = {}
        for iface in interfaces:
            if iface == "lo":
                continue
            nio = counters.get(iface)
            if nio is None:
                continue
            current[iface] = (nio.bytes_sent, nio.bytes_recv)
            node = path_component(iface)

            samples.append(Sample(self.path(node, "bytes_sent_total"), timestamp, float(nio.bytes_sent)))
            samples.append(Sample(self.path(node, "bytes_recv_total"), timestamp, float(nio.bytes_recv)))

            if self._prev_counters and self._prev_time:
                dt = now - self._prev_time
                if dt > 0 and iface in self._prev_counters:
                    prev_sent, prev_recv = self._prev_counters[iface]
                    samples.append(Sample(
                        self.path(node, "bytes_sent_rate"), timestamp, (nio.bytes_sent - prev_sent) / dt,
                    ))
                    samples.append(Sample(
                        self.path(node, "bytes_recv_rate"), timestamp, (nio.bytes_recv - prev_recv) / dt,
                    ))

        self._prev_counters = current
        self._prev_time = now
        return samples
