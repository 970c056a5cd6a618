"""
lgpio Edge Source
=================

Falling-edge capture on a Linux gpiochip through lgpio alerts.

lgpio timestamps every alert in its own thread and calls back with the
tick (nanoseconds since the epoch). Callbacks only enqueue; the bridge
loop drains the queue from its single thread, so no capture state is
shared across threads.

Wiring:
    Wiegand lines are open-collector and idle high. Both lines are claimed
    as FALLING_EDGE alerts, with the internal pull-up unless disabled.
"""

import logging
import queue
import threading
import time
from typing import Dict, List, Optional

import lgpio

from wiegand_bridge.errors import EdgeReadError, EdgeSourceError
from wiegand_bridge.models.edge import Edge, Line


logger = logging.getLogger(__name__)


# Level reported by lgpio when a watchdog fires instead of an edge
_WATCHDOG_LEVEL = 2


class LgpioEdgeSource:
    """
    Edge source backed by lgpio alerts.

    Attributes:
        chip: gpiochip index (/dev/gpiochip<chip>)
        d0: Line offset of Wiegand D0
        d1: Line offset of Wiegand D1
        pull_up: Enable the internal pull-up on both lines

    Example:
        source = LgpioEdgeSource(chip=0, d0=17, d1=27)
        source.open()
        edges = source.wait_for_edges(0.1)
        source.close()
    """

    def __init__(
        self,
        chip: int = 0,
        d0: int = 228,
        d1: int = 233,
        pull_up: bool = True,
    ) -> None:
        if d0 == d1:
            raise ValueError("D0 and D1 must be different lines")

        self.chip = chip
        self.d0 = d0
        self.d1 = d1
        self.pull_up = pull_up

        self._lines: Dict[int, Line] = {d0: Line.D0, d1: Line.D1}
        self._handle: Optional[int] = None
        self._callbacks: list = []
        self._queue: "queue.Queue[Edge]" = queue.Queue()
        self._errors: List[str] = []
        self._lock = threading.Lock()

    def open(self) -> None:
        """
        Claim both lines and register the alert callbacks.

        Raises:
            EdgeSourceError: The chip or a line could not be acquired.
        """
        if self._handle is not None:
            return

        flags = lgpio.SET_PULL_UP if self.pull_up else 0
        try:
            self._handle = lgpio.gpiochip_open(self.chip)
            for gpio in (self.d0, self.d1):
                lgpio.gpio_claim_alert(self._handle, gpio, lgpio.FALLING_EDGE, flags)
                self._callbacks.append(
                    lgpio.callback(self._handle, gpio, lgpio.FALLING_EDGE, self._on_edge)
                )
        except lgpio.error as e:
            self.close()
            raise EdgeSourceError(
                f"Cannot claim gpiochip{self.chip} lines D0={self.d0} D1={self.d1}: {e}"
            ) from e

        logger.info(
            f"LgpioEdgeSource opened: gpiochip{self.chip}, D0={self.d0}, D1={self.d1}, "
            f"pull_up={self.pull_up}"
        )

    def _on_edge(self, chip: int, gpio: int, level: int, tick: int) -> None:
        # Runs in lgpio's callback thread
        if level == _WATCHDOG_LEVEL:
            return
        line = self._lines.get(gpio)
        if line is None:
            with self._lock:
                self._errors.append(f"alert from unexpected gpio {gpio}")
            return
        self._queue.put(Edge(line, tick))

    def wait_for_edges(self, max_wait: float) -> List[Edge]:
        with self._lock:
            errors, self._errors = self._errors, []
        if errors:
            raise EdgeReadError(f"{len(errors)} unreadable event(s): {errors[0]}")

        try:
            edges = [self._queue.get(timeout=max_wait)]
        except queue.Empty:
            return []
        while True:
            try:
                edges.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return edges

    def clock_ns(self) -> int:
        # lgpio ticks are CLOCK_REALTIME nanoseconds
        return time.time_ns()

    def close(self) -> None:
        """Cancel callbacks and release the chip."""
        for cb in self._callbacks:
            cb.cancel()
        self._callbacks = []
        if self._handle is not None:
            try:
                lgpio.gpiochip_close(self._handle)
            finally:
                self._handle = None
            logger.info(f"LgpioEdgeSource closed: gpiochip{self.chip}")
