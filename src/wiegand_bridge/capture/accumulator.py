"""
Frame Accumulator
=================

Timeout-driven state machine that assembles filtered edges into frames.

Wiegand has no start or end marker: a frame ends when the lines stay
silent for the idle timeout. Two paths close a frame:

    1. Edge path: an accepted edge arrives more than idle_timeout after
       the previous accepted edge. The old frame is closed first, then the
       edge becomes bit 0 of a new frame. This detects the boundary as
       soon as the next card starts, without waiting for a poll cycle.
    2. Poll path: poll(now) finds the in-flight frame idle for longer
       than idle_timeout.

On both paths a timestamp earlier than the last accepted edge (the edge
clock stepped back) closes the frame as well.

States:
    IDLE:         no bits captured
    ACCUMULATING: 1..max_bits captured, waiting for more or for timeout
    (emitting is transient, inside close-out)

Close-out:
    - length >= min_bits: sequence_counter += 1, RawFrame returned
    - length <  min_bits: dropped as line noise, counter untouched

Bits beyond max_bits are dropped; the frame still closes on timeout and
is decoded on what was captured.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from wiegand_bridge.capture.pulse_filter import PulseFilter
from wiegand_bridge.models.edge import Edge, Line
from wiegand_bridge.models.frame import RawFrame


logger = logging.getLogger(__name__)


# Storage capacity of a pulse train. max_bits must stay below it.
PULSE_TRAIN_CAPACITY = 256


class AccumulatorState(str, Enum):
    """Frame accumulator state."""

    IDLE = "IDLE"
    ACCUMULATING = "ACCUMULATING"


@dataclass
class PulseTrain:
    """
    In-flight bit buffer. Owned exclusively by one FrameAccumulator.

    Attributes:
        bits: Bits captured so far
        last_edge_ns: Time of the last accepted edge, None when empty
        dropped: Bits dropped after the buffer was full
    """

    bits: List[int] = field(default_factory=list)
    last_edge_ns: Optional[int] = None
    dropped: int = 0

    def clear(self) -> None:
        self.bits.clear()
        self.last_edge_ns = None
        self.dropped = 0


class FrameAccumulator:
    """
    Assembles edges into RawFrames delimited by idle gaps.

    Attributes:
        idle_timeout_ns: Silence that terminates a frame
        min_bits: Shortest reportable frame
        max_bits: Bits kept per frame, extras dropped
        swap_lines: Map D0 to 1 and D1 to 0 instead of the convention
        sequence_counter: Counter of the last emitted frame (0 = none yet)

    Example:
        accumulator = FrameAccumulator(PulseFilter(100), idle_timeout_ms=50)
        frame = accumulator.feed(edge) or accumulator.poll(now_ns)
    """

    def __init__(
        self,
        pulse_filter: PulseFilter,
        idle_timeout_ms: float = 50.0,
        min_bits: int = 8,
        max_bits: int = 255,
        swap_lines: bool = False,
    ) -> None:
        """
        Initialize frame accumulator.

        Args:
            pulse_filter: Debounce applied to every edge
            idle_timeout_ms: Frame idle timeout in milliseconds
            min_bits: Frames shorter than this are discarded unreported
            max_bits: Maximum bits kept per frame (< PULSE_TRAIN_CAPACITY)
            swap_lines: Invert the D0/D1 to bit mapping
        """
        if idle_timeout_ms <= 0:
            raise ValueError("idle_timeout_ms must be positive")
        if min_bits < 1:
            raise ValueError("min_bits must be >= 1")
        if not min_bits <= max_bits < PULSE_TRAIN_CAPACITY:
            raise ValueError(
                f"max_bits must be in [min_bits, {PULSE_TRAIN_CAPACITY - 1}]"
            )

        self.pulse_filter = pulse_filter
        self.idle_timeout_ns = int(idle_timeout_ms * 1_000_000)
        self.min_bits = min_bits
        self.max_bits = max_bits
        self.swap_lines = swap_lines

        self.sequence_counter: int = 0
        self.frames_discarded: int = 0
        self.bits_dropped: int = 0
        self._train = PulseTrain()

        logger.info(
            f"FrameAccumulator initialized: idle_timeout={idle_timeout_ms}ms, "
            f"min_bits={min_bits}, max_bits={max_bits}, swap_lines={swap_lines}"
        )

    @property
    def state(self) -> AccumulatorState:
        """Current state."""
        if self._train.bits or self._train.dropped:
            return AccumulatorState.ACCUMULATING
        return AccumulatorState.IDLE

    @property
    def pending_bits(self) -> int:
        """Bits captured in the in-flight frame."""
        return len(self._train.bits)

    def bit_for(self, line: Line) -> int:
        """Bit value carried by an edge on `line`."""
        one_line = Line.D0 if self.swap_lines else Line.D1
        return 1 if line == one_line else 0

    def feed(self, edge: Edge) -> Optional[RawFrame]:
        """
        Process one edge.

        Args:
            edge: Edge from the source

        Returns:
            The frame closed by this edge's gap, if one was emitted.
        """
        if not self.pulse_filter.accept(edge):
            return None

        emitted: Optional[RawFrame] = None
        train = self._train
        if self._gap_ends_frame(edge.timestamp_ns):
            emitted = self._close_out()

        if len(train.bits) < self.max_bits:
            train.bits.append(self.bit_for(edge.line))
        else:
            if train.dropped == 0:
                logger.warning(
                    f"Pulse train full at {self.max_bits} bits, dropping extra bits"
                )
            train.dropped += 1
        train.last_edge_ns = edge.timestamp_ns

        return emitted

    def poll(self, now_ns: int) -> Optional[RawFrame]:
        """
        Close the in-flight frame if it has been idle too long.

        Args:
            now_ns: Current time on the edge source's clock

        Returns:
            The emitted frame, if any.
        """
        if self._gap_ends_frame(now_ns):
            return self._close_out()
        return None

    def _gap_ends_frame(self, now_ns: int) -> bool:
        """
        Whether the in-flight frame is over at `now_ns`.

        A timestamp earlier than the last edge (the clock stepped back)
        ends the frame as well.
        """
        last = self._train.last_edge_ns
        if last is None:
            return False
        delta = now_ns - last
        if delta < 0:
            logger.warning(
                f"Edge clock stepped back {-delta}ns, closing in-flight frame"
            )
            return True
        return delta > self.idle_timeout_ns

    def _close_out(self) -> Optional[RawFrame]:
        """Finish the in-flight frame and return to IDLE."""
        train = self._train
        bits = tuple(train.bits)
        dropped = train.dropped
        train.clear()

        if dropped:
            self.bits_dropped += dropped
            logger.warning(
                f"Frame overflowed: kept {len(bits)} bits, dropped {dropped}"
            )

        if len(bits) < self.min_bits:
            self.frames_discarded += 1
            logger.debug(f"Discarded {len(bits)}-bit frame (below {self.min_bits})")
            return None

        self.sequence_counter += 1
        return RawFrame(bits=bits, sequence_counter=self.sequence_counter)

    def reset(self) -> None:
        """Drop the in-flight frame. The sequence counter is kept."""
        self._train.clear()
