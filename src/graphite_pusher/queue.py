"""Thread-safe FIFO shared between producers and the dispatcher."""

from __future__ import annotations

import threading
from collections import deque
from typing import Iterable

from .sample import Sample


class SampleQueue:
    """Unbounded FIFO of pending samples.

    Any number of producer threads may call :meth:`enqueue`; a single
    consumer calls :meth:`drain_all`. One lock guards both sides and is
    held only for O(1) appends or a single swap of the underlying deque.
    """

    def __init__(self) -> None:
        self._items: deque[Sample] = deque()
        self._lock = threading.Lock()

    def enqueue(self, sample: Sample) -> None:
        """Append *sample*. Never blocks beyond the lock, never fails."""
        with self._lock:
            self._items.append(sample)

    def enqueue_many(self, samples: Iterable[Sample]) -> None:
        """Append several samples, preserving their relative order."""
        with self._lock:
            self._items.extend(samples)

    def drain_all(self) -> list[Sample]:
        """Atomically remove and return everything currently queued."""
        with self._lock:
            items, self._items = self._items, deque()
        return list(items)

    def is_empty(self) -> bool:
        """Point-in-time emptiness check; not a synchronization barrier."""
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
