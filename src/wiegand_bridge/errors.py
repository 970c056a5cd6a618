"""
Bridge Errors
=============

Exception hierarchy for the Wiegand bridge.

Per-frame decode failures are NOT exceptions: they travel as normal
DecodedFrame values with the error field set. Exceptions are reserved for
the edge source and the publish sink.

Severity:
    - EdgeSourceError: fatal, raised at startup (lines cannot be claimed)
    - EdgeReadError: transient, a single event is logged and skipped
    - SinkUnavailableError: fatal, raised at startup (broker unreachable)
"""


class WiegandBridgeError(Exception):
    """Base class for all bridge errors."""


class EdgeSourceError(WiegandBridgeError):
    """GPIO lines could not be acquired or configured."""


class EdgeReadError(WiegandBridgeError):
    """A single edge event could not be read."""


class SinkUnavailableError(WiegandBridgeError):
    """The publish sink could not be connected."""
