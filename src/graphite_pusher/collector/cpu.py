"""CPU resource collector."""

from __future__ import annotations

import psutil

from ..sample import Sample
from .base import BaseCollector


class CpuCollector(BaseCollector):
    """Collects CPU usage metrics."""

    @property
    def name(self) -> str:
        return "cpu"

    def collect(self, timestamp: int) -> list[Sample]:
        samples: list[Sample] = []

        overall = psutil.cpu_percent(interval=0)
        samples.append(Sample(self.path("total", "usage_percent"), timestamp, overall))

        per_cpu = psutil.cpu_percent(interval=0, percpu=True)
        for idx, pct in enumerate(per_cpu):
            samples.append(Sample(self.path(str(idx), "usage_percent"), timestamp, pct))

        load1, load5, load15 = psutil.getloadavg()
        samples.append(Sample(self.path("load_avg_1m"), timestamp, load1))
        samples.append(Sample(self.path("load_avg_5m"), timestamp, load5))
        samples.append(Sample(self.path("load_avg_15m"), timestamp, load15))

        return samples
