"""The Sample value object submitted by callers."""

from __future__ import annotations

import operator
import time
from dataclasses import dataclass

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def current_timestamp() -> int:
    """Return the local clock as whole seconds since the epoch."""
    return int(time.time())


@dataclass(frozen=True)
class Sample:
    """A single (path, timestamp, value) observation.

    Fields are checked and normalised on construction so that anything
    sitting in the queue is guaranteed to encode: *path* must be a str,
    *timestamp* an integer (``1.5`` is rejected, not truncated) within the
    signed 32-bit range, and *value* anything :func:`float` accepts.
    """

    path: str
    timestamp: int
    value: float

    def __post_init__(self) -> None:
        if not isinstance(self.path, str):
            raise TypeError(f"path must be str, got {type(self.path).__name__}")
        try:
            timestamp = operator.index(self.timestamp)
        except TypeError:
            raise TypeError(
                f"timestamp must be an integer, got {type(self.timestamp).__name__}"
            ) from None
        if not INT32_MIN <= timestamp <= INT32_MAX:
            raise ValueError(
                f"timestamp {timestamp} does not fit a signed 32-bit integer"
            )
        value = float(self.value)
        # frozen dataclass: normalise via object.__setattr__
        object.__setattr__(self, "timestamp", int(timestamp))
        object.__setattr__(self, "value", value)
