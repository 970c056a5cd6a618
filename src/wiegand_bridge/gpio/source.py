"""
Edge Source Protocol
====================

Contract between the bridge loop and whatever delivers line edges.

Guarantees expected from implementations:
    - Only one edge polarity is reported (falling edges)
    - Timestamps are integer nanoseconds with sub-millisecond resolution
    - clock_ns() reads the same clock the timestamps come from
"""

from typing import List, Protocol

from wiegand_bridge.models.edge import Edge


class EdgeSource(Protocol):
    """Protocol for edge sources."""

    def wait_for_edges(self, max_wait: float) -> List[Edge]:
        """
        Block up to `max_wait` seconds for edges.

        Returns:
            Edges in arrival order, empty on timeout.

        Raises:
            EdgeReadError: One or more events could not be read.
        """
        ...

    def clock_ns(self) -> int:
        """Current time on the edge timestamp clock."""
        ...

    def close(self) -> None:
        """Release the lines."""
        ...
