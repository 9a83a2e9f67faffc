"""Exception hierarchy for graphite_pusher."""

from __future__ import annotations


class PusherError(Exception):
    """Base class for all graphite_pusher errors."""


class TransportError(PusherError):
    """The byte stream to the collector could not be opened or written."""


class ResolutionError(TransportError):
    """Address lookup for the collector failed."""


class ConnectError(TransportError):
    """None of the resolved addresses accepted a connection."""


class WriteError(TransportError):
    """Sending an encoded frame failed mid-stream."""


class EncodingInvariantError(PusherError):
    """An encoded frame does not match its own length header.

    Raised instead of returning bytes that would corrupt the collector's
    parse. This indicates a programming error, not a transient condition.
    """


class ConfigError(PusherError, ValueError):
    """Invalid configuration value."""
