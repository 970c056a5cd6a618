"""
Pulse Filter
============

Debounce for Wiegand line edges.

An edge is rejected when it arrives less than `min_interval_us` after the
last ACCEPTED edge of the same scope. Rejected edges have no side effect;
in particular they do not move the baseline, so a burst of bounce cannot
push the window forward indefinitely.

Scopes:
    shared:   one baseline for both lines (a pulse on D0 masks D1 bounce)
    per_line: independent baselines for D0 and D1

Timestamps are integer nanoseconds, so there is no wrap-around. A negative
delta means the source clock was reset; the edge is accepted and becomes
the new baseline.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from wiegand_bridge.models.edge import Edge, Line


logger = logging.getLogger(__name__)


class DebounceScope(str, Enum):
    """Which edges share a debounce baseline."""

    SHARED = "shared"
    PER_LINE = "per_line"


def within_interval(timestamp_ns: int, last_ns: Optional[int], min_interval_ns: int) -> bool:
    """
    Whether an edge falls inside the debounce window of `last_ns`.

    Args:
        timestamp_ns: Candidate edge time
        last_ns: Last accepted edge time, None if there was none
        min_interval_ns: Minimum spacing between accepted edges

    Returns:
        True if the edge must be rejected.
    """
    if last_ns is None:
        return False
    delta = timestamp_ns - last_ns
    if delta < 0:
        return False
    return delta < min_interval_ns


class PulseFilter:
    """
    Minimum-interval edge filter.

    Attributes:
        min_interval_ns: Minimum spacing between accepted edges
        scope: Baseline sharing policy
        rejected_count: Edges rejected since creation or reset

    Example:
        pulse_filter = PulseFilter(min_interval_us=100)
        if pulse_filter.accept(edge):
            append_bit(edge)
    """

    def __init__(
        self,
        min_interval_us: float = 100,
        scope: DebounceScope = DebounceScope.SHARED,
    ) -> None:
        """
        Initialize pulse filter.

        Args:
            min_interval_us: Debounce threshold in microseconds (>= 0)
            scope: Shared or per-line baseline
        """
        if min_interval_us < 0:
            raise ValueError("min_interval_us must be >= 0")

        self.min_interval_ns = int(min_interval_us * 1000)
        self.scope = DebounceScope(scope)
        self.rejected_count: int = 0
        self._last_accepted: Dict[Optional[Line], int] = {}

        logger.info(
            f"PulseFilter initialized: min_interval={min_interval_us}us, "
            f"scope={self.scope.value}"
        )

    def _key(self, line: Line) -> Optional[Line]:
        return line if self.scope == DebounceScope.PER_LINE else None

    def last_accepted(self, line: Line) -> Optional[int]:
        """Baseline timestamp that applies to `line`, None before any edge."""
        return self._last_accepted.get(self._key(line))

    def accept(self, edge: Edge) -> bool:
        """
        Filter one edge.

        Args:
            edge: Candidate edge

        Returns:
            True if accepted (baseline updated), False if rejected.
        """
        key = self._key(edge.line)
        if within_interval(edge.timestamp_ns, self._last_accepted.get(key), self.min_interval_ns):
            self.rejected_count += 1
            logger.debug(
                f"Debounced {edge.line.value} edge at {edge.timestamp_ns}ns "
                f"({edge.timestamp_ns - self._last_accepted[key]}ns after last)"
            )
            return False

        self._last_accepted[key] = edge.timestamp_ns
        return True

    def reset(self) -> None:
        """Forget all baselines."""
        self._last_accepted.clear()
        self.rejected_count = 0
