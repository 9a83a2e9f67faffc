"""graphite_pusher – asynchronous metrics forwarding to a Graphite carbon collector."""

from .pusher import Pusher
from .sample import Sample

__version__ = "0.1.0"

__all__ = ["Pusher", "Sample", "__version__"]
