"""
Capture Module
==============

Turns timestamped line edges into delimited bit frames.

Components:
    - PulseFilter: Debounce, rejects edges closer than the minimum interval
    - FrameAccumulator: Timeout-driven state machine emitting RawFrames
    - PulseTrain: In-flight bit buffer owned by the accumulator

Example:
    pulse_filter = PulseFilter(min_interval_us=100)
    accumulator = FrameAccumulator(pulse_filter, idle_timeout_ms=50)

    for edge in source.wait_for_edges(0.1):
        frame = accumulator.feed(edge)
        if frame:
            decode(frame)
    frame = accumulator.poll(source.clock_ns())
"""

from wiegand_bridge.capture.pulse_filter import DebounceScope, PulseFilter
from wiegand_bridge.capture.accumulator import (
    AccumulatorState,
    FrameAccumulator,
    PulseTrain,
)

__all__ = [
    "DebounceScope",
    "PulseFilter",
    "AccumulatorState",
    "FrameAccumulator",
    "PulseTrain",
]
