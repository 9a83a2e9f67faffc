"""Memory resource collector."""

from __future__ import annotations

import psutil

from ..sample import Sample
from .base import BaseCollector


class MemoryCollector(BaseCollector):
    """Collects memory and swap usage metrics."""

    @property
    def name(self) -> str:
        return "memory"

    def collect(self, timestamp: int) -> list[Sample]:
        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()

        return [
            Sample(self.path("usage_percent"), timestamp, float(mem.percent)),
            Sample(self.path("used_bytes"), timestamp, float(mem.used)),
            Sample(self.path("available_bytes"), timestamp, float(mem.available)),
            Sample(self.path("total_bytes"), timestamp, float(mem.total)),
            Sample(self.join("swap", "usage_percent"), timestamp, float(swap.percent)),
        ]
