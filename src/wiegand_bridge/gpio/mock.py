"""
Mock Edge Source
================

Deterministic edge source for tests and hardware-free runs.

Time is virtual: each wait_for_edges(max_wait) call advances the clock by
max_wait and returns every scripted edge up to the new time. Nothing
sleeps, so a whole card swipe plus its idle gap replays instantly.
"""

import logging
from collections import deque
from typing import Deque, Iterable, List, Sequence, Tuple

from wiegand_bridge.decode.formats import W26, WiegandLayout, encode
from wiegand_bridge.errors import EdgeReadError
from wiegand_bridge.models.edge import Edge, Line


logger = logging.getLogger(__name__)


# Typical reader timing: 50us pulse every 2ms
DEFAULT_BIT_INTERVAL_US = 2000
DEFAULT_FRAME_GAP_MS = 250


def edges_from_bits(
    bits: Sequence[int],
    start_ns: int = 0,
    bit_interval_us: float = DEFAULT_BIT_INTERVAL_US,
    swap_lines: bool = False,
) -> List[Edge]:
    """
    Build the edge train a reader would send for `bits`.

    Args:
        bits: Bits in transmission order (ints or '0'/'1' characters)
        start_ns: Timestamp of the first edge
        bit_interval_us: Spacing between consecutive edges
        swap_lines: Send ones on D0 instead of D1

    Returns:
        One edge per bit.
    """
    one, zero = (Line.D0, Line.D1) if swap_lines else (Line.D1, Line.D0)
    step = int(bit_interval_us * 1000)
    return [
        Edge(one if int(b) else zero, start_ns + i * step)
        for i, b in enumerate(bits)
    ]


class MockEdgeSource:
    """
    Scripted edge source on a virtual clock.

    Attributes:
        now_ns: Virtual clock
        calls: Number of wait_for_edges calls

    Example:
        source = MockEdgeSource.from_cards([(12, 3456), (12, 3457)])
        while not source.exhausted:
            edges = source.wait_for_edges(0.1)
    """

    def __init__(self, edges: Iterable[Edge] = (), start_ns: int = 0) -> None:
        """
        Args:
            edges: Scripted edges, sorted by timestamp on load
            start_ns: Initial virtual time
        """
        self._edges: Deque[Edge] = deque(sorted(edges, key=lambda e: e.timestamp_ns))
        self._failures: Deque[str] = deque()
        self.now_ns = start_ns
        self.calls: int = 0
        self.closed = False

    @classmethod
    def from_cards(
        cls,
        cards: Iterable[Tuple[int, int]],
        layout: WiegandLayout = W26,
        bit_interval_us: float = DEFAULT_BIT_INTERVAL_US,
        gap_ms: float = DEFAULT_FRAME_GAP_MS,
    ) -> "MockEdgeSource":
        """Source replaying one parity-correct frame per (facility, card)."""
        frames = [encode(layout, facility, card) for facility, card in cards]
        return cls.from_frames(frames, bit_interval_us=bit_interval_us, gap_ms=gap_ms)

    @classmethod
    def from_frames(
        cls,
        frames: Iterable[Sequence[int]],
        bit_interval_us: float = DEFAULT_BIT_INTERVAL_US,
        gap_ms: float = DEFAULT_FRAME_GAP_MS,
        start_ns: int = 0,
    ) -> "MockEdgeSource":
        """Source replaying raw bit frames separated by `gap_ms` of silence."""
        edges: List[Edge] = []
        t = start_ns
        for bits in frames:
            train = edges_from_bits(bits, start_ns=t, bit_interval_us=bit_interval_us)
            edges.extend(train)
            if train:
                t = train[-1].timestamp_ns
            t += int(gap_ms * 1_000_000)
        return cls(edges, start_ns=start_ns)

    @property
    def exhausted(self) -> bool:
        """Whether every scripted edge was delivered."""
        return not self._edges

    @property
    def remaining(self) -> int:
        return len(self._edges)

    def fail_next(self, message: str = "simulated read error") -> None:
        """Make the next wait_for_edges call raise EdgeReadError."""
        self._failures.append(message)

    def wait_for_edges(self, max_wait: float) -> List[Edge]:
        self.calls += 1
        if self._failures:
            raise EdgeReadError(self._failures.popleft())

        self.now_ns += int(max_wait * 1_000_000_000)
        batch: List[Edge] = []
        while self._edges and self._edges[0].timestamp_ns <= self.now_ns:
            batch.append(self._edges.popleft())
        return batch

    def clock_ns(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        """Move the virtual clock without delivering edges."""
        self.now_ns += int(seconds * 1_000_000_000)

    def close(self) -> None:
        self.closed = True
        logger.debug(f"MockEdgeSource closed with {len(self._edges)} edges undelivered")

