"""
Edge Data Model
===============

A single falling edge on one of the two Wiegand data lines.

Edges are produced by an EdgeSource and consumed exactly once by the
pulse filter. Timestamps are integer nanoseconds on the source's own
monotonic clock (see EdgeSource.clock_ns).
"""

from dataclasses import dataclass
from enum import Enum


class Line(str, Enum):
    """Wiegand data line identifier."""

    D0 = "D0"
    D1 = "D1"


@dataclass(frozen=True, slots=True)
class Edge:
    """
    Timestamped falling edge.

    Attributes:
        line: Line the edge arrived on
        timestamp_ns: Edge time in nanoseconds, source clock
    """

    line: Line
    timestamp_ns: int
