"""
Wiegand Service
===============

Single-threaded bridge loop:

    edges -> PulseFilter -> FrameAccumulator -> FormatDecoder -> FramePublisherAdapter

One thread owns all capture state (the in-flight pulse train and the
sequence counter). Each iteration blocks on the edge source for at most
poll_interval, feeds every edge through the accumulator, then polls it so
idle-timeout closures are detected even when no further edges arrive.

Shutdown is cooperative: run() checks the stop event once per iteration
and always finishes the iteration in progress. An unterminated frame is
not flushed.

Error Handling:
    - EdgeReadError: logged, iteration continues with no edges
    - Decode failures: published like any other frame (LastError)
    - Sink failures: the sink's concern, never retried here
"""

import logging
import threading
import time
from typing import Dict, List, Optional

from wiegand_bridge.capture import DebounceScope, FrameAccumulator, PulseFilter
from wiegand_bridge.config import Settings
from wiegand_bridge.decode import FormatDecoder
from wiegand_bridge.errors import EdgeReadError
from wiegand_bridge.gpio.source import EdgeSource
from wiegand_bridge.models.codes import DecodeError
from wiegand_bridge.models.frame import DecodedFrame, RawFrame
from wiegand_bridge.publish.adapter import FramePublisherAdapter
from wiegand_bridge.publish.sink import PublishSink


logger = logging.getLogger(__name__)


class BridgeMetrics:
    """Metrics for WiegandService observability."""

    __slots__ = (
        "edges_received",
        "edges_rejected",
        "frames_emitted",
        "frames_discarded",
        "bits_dropped",
        "frames_decoded",
        "decode_errors",
        "read_errors",
        "iterations",
    )

    def __init__(self) -> None:
        self.edges_received: int = 0
        self.edges_rejected: int = 0
        self.frames_emitted: int = 0
        self.frames_discarded: int = 0
        self.bits_dropped: int = 0
        self.frames_decoded: int = 0
        self.decode_errors: Dict[str, int] = {
            DecodeError.PARITY_FAIL.value: 0,
            DecodeError.LEN_MISMATCH.value: 0,
        }
        self.read_errors: int = 0
        self.iterations: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "edges_received": self.edges_received,
            "edges_rejected": self.edges_rejected,
            "frames_emitted": self.frames_emitted,
            "frames_discarded": self.frames_discarded,
            "bits_dropped": self.bits_dropped,
            "frames_decoded": self.frames_decoded,
            "decode_errors": dict(self.decode_errors),
            "read_errors": self.read_errors,
            "iterations": self.iterations,
        }


class WiegandService:
    """
    Bridge between an edge source and a publish sink.

    Attributes:
        source: Edge source
        accumulator: Frame accumulator (owns the pulse filter)
        decoder: Format decoder
        publisher: Publisher adapter
        poll_interval: Bounded wait per iteration, seconds
        metrics: Operational metrics
        last_frame: Most recently published frame

    Example:
        service = WiegandService.from_settings(settings, source, sink)
        stop_event = threading.Event()
        service.run(stop_event)
    """

    def __init__(
        self,
        source: EdgeSource,
        accumulator: FrameAccumulator,
        decoder: FormatDecoder,
        publisher: FramePublisherAdapter,
        poll_interval: float = 0.1,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.source = source
        self.accumulator = accumulator
        self.decoder = decoder
        self.publisher = publisher
        self.poll_interval = poll_interval

        self.metrics = BridgeMetrics()
        self.last_frame: Optional[DecodedFrame] = None
        self.started_at: Optional[float] = None
        self._running: bool = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source: EdgeSource,
        sink: PublishSink,
    ) -> "WiegandService":
        """Wire the pipeline from loaded settings."""
        capture = settings.capture
        pulse_filter = PulseFilter(
            min_interval_us=capture.min_pulse_interval_us,
            scope=DebounceScope(capture.debounce_scope),
        )
        accumulator = FrameAccumulator(
            pulse_filter,
            idle_timeout_ms=capture.frame_idle_timeout_ms,
            min_bits=capture.min_frame_bits,
            max_bits=capture.max_frame_bits,
            swap_lines=capture.swap_lines,
        )
        decoder = FormatDecoder(
            invert_bits=settings.decode.invert_bits,
            reverse_bits=settings.decode.reverse_bits,
            salvage_enabled=settings.decode.salvage_enabled,
            salvage_min_bits=settings.decode.salvage_min_bits,
            salvage_max_bits=settings.decode.salvage_max_bits,
        )
        publisher = FramePublisherAdapter(
            sink,
            device_id=settings.device.device_id,
            device_name=settings.device.name,
            driver=settings.device.driver,
        )
        return cls(source, accumulator, decoder, publisher, capture.poll_interval_sec)

    @property
    def running(self) -> bool:
        """Whether run() is executing."""
        return self._running

    def step(self) -> List[DecodedFrame]:
        """
        Run one loop iteration.

        Returns:
            Frames published during this iteration, in emission order.
        """
        self.metrics.iterations += 1
        try:
            edges = self.source.wait_for_edges(self.poll_interval)
        except EdgeReadError as e:
            self.metrics.read_errors += 1
            logger.warning(f"Edge read error, skipping: {e}")
            edges = []

        published: List[DecodedFrame] = []
        for edge in edges:
            self.metrics.edges_received += 1
            raw = self.accumulator.feed(edge)
            if raw is not None:
                published.append(self._handle(raw))

        raw = self.accumulator.poll(self.source.clock_ns())
        if raw is not None:
            published.append(self._handle(raw))

        self.metrics.edges_rejected = self.accumulator.pulse_filter.rejected_count
        self.metrics.frames_discarded = self.accumulator.frames_discarded
        self.metrics.bits_dropped = self.accumulator.bits_dropped
        return published

    def _handle(self, raw: RawFrame) -> DecodedFrame:
        """Decode and publish one emitted frame."""
        self.metrics.frames_emitted += 1
        decoded = self.decoder.decode(raw)
        if decoded.ok:
            self.metrics.frames_decoded += 1
        else:
            self.metrics.decode_errors[decoded.error.value] += 1

        self.publisher.publish(decoded)
        self.last_frame = decoded
        return decoded

    def run(self, stop_event: threading.Event) -> None:
        """
        Loop until `stop_event` is set.

        Args:
            stop_event: Cancellation token, checked once per iteration
        """
        self._running = True
        self.started_at = time.time()
        logger.info(
            f"WiegandService started: device={self.publisher.device_id}, "
            f"poll_interval={self.poll_interval}s"
        )
        try:
            while not stop_event.is_set():
                self.step()
        finally:
            self._running = False
            if self.accumulator.pending_bits:
                logger.info(
                    f"Dropping unterminated frame of {self.accumulator.pending_bits} bits"
                )
            logger.info(
                f"WiegandService stopped after {self.metrics.frames_emitted} frames"
            )
