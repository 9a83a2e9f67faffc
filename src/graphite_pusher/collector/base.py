"""Base interface for system resource collectors."""

from __future__ import annotations

import abc
import re

from ..sample import Sample

_UNSAFE = re.compile(r"[.\s]+")


def path_component(text: str) -> str:
    """Make *text* usable as a single Graphite path node."""
    return _UNSAFE.sub("_", text.strip()) or "_"


class BaseCollector(abc.ABC):
    """Abstract base class for system resource collectors.

    Every sample path starts with *prefix*, e.g. ``system.cpu.total.usage_percent``.
    """

    def __init__(self, prefix: str = "system") -> None:
        self.prefix = prefix.rstrip(".")

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Collector name used in configuration and output."""

    @abc.abstractmethod
    def collect(self, timestamp: int) -> list[Sample]:
        """Read current values, all stamped with *timestamp*."""

    def join(self, *parts: str) -> str:
        """Join *parts* under the configured prefix."""
        return ".".join((self.prefix, *parts) if self.prefix else parts)

    def path(self, *parts: str) -> str:
        """Join *parts* under ``<prefix>.<collector name>``."""
        return self.join(self.name, *parts)
