"""
Frame Publisher Adapter
=======================

Maps a DecodedFrame onto the fixed control schema of a Wiegand device:

    /devices/<device_id>/controls/<Control>

Controls (publication order is fixed):
    ReadCounter   value  sequence counter
    Bits          text   published bit text
    Len           value  captured bit count
    RawValue      value  published bits as unsigned integer
    FacilityCode  value  facility code, -1 when absent
    CardNumber    value  card number, -1 when absent
    Format        text   w26 / w34 / unknown
    LastError     text   "" / parity_fail / len_mismatch

All values are retained so late subscribers see the last read. The schema
is static: absent fields publish the NO_VALUE sentinel rather than being
omitted.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple

from wiegand_bridge.models.frame import DecodedFrame
from wiegand_bridge.publish.sink import PublishSink


logger = logging.getLogger(__name__)


NO_VALUE = -1


@dataclass(frozen=True, slots=True)
class Control:
    """
    One published control.

    Attributes:
        name: Control name (last topic segment)
        type: Meta type advertised to consumers ("value" or "text")
        render: Extracts the payload text from a DecodedFrame
    """

    name: str
    type: str
    render: Callable[[DecodedFrame], str]


def _optional(value) -> str:
    return str(NO_VALUE if value is None else value)


CONTROLS: Tuple[Control, ...] = (
    Control("ReadCounter", "value", lambda f: str(f.sequence_counter)),
    Control("Bits", "text", lambda f: f.bits),
    Control("Len", "value", lambda f: str(f.length)),
    Control("RawValue", "value", lambda f: str(f.raw_value)),
    Control("FacilityCode", "value", lambda f: _optional(f.facility)),
    Control("CardNumber", "value", lambda f: _optional(f.card)),
    Control("Format", "text", lambda f: f.format.value),
    Control("LastError", "text", lambda f: f.error.value),
)


class FramePublisherAdapter:
    """
    Publishes decoded frames as retained device controls.

    Attributes:
        sink: Destination sink
        device_id: Device segment of every topic
        device_name: Value of the device's meta/name
        driver: Value of the device's meta/driver

    Example:
        adapter = FramePublisherAdapter(sink, device_id="wiegand")
        adapter.publish_meta()
        adapter.publish(decoded_frame)
    """

    def __init__(
        self,
        sink: PublishSink,
        device_id: str = "wiegand",
        device_name: str = "Wiegand",
        driver: str = "wb-mqtt-wiegand",
    ) -> None:
        if not device_id or "/" in device_id:
            raise ValueError(f"Invalid device_id: {device_id!r}")

        self.sink = sink
        self.device_id = device_id
        self.device_name = device_name
        self.driver = driver

    @property
    def device_topic(self) -> str:
        return f"/devices/{self.device_id}"

    def control_topic(self, name: str) -> str:
        """Topic of a control's value."""
        return f"{self.device_topic}/controls/{name}"

    def render(self, frame: DecodedFrame) -> List[Tuple[str, str]]:
        """
        Map a frame onto (topic, payload) pairs in publication order.

        Args:
            frame: Decoded or failed frame

        Returns:
            One pair per control.
        """
        return [(self.control_topic(c.name), c.render(frame)) for c in CONTROLS]

    def meta(self) -> List[Tuple[str, str]]:
        """Static device and control description, in publication order."""
        pairs = [
            (f"{self.device_topic}/meta/name", self.device_name),
            (f"{self.device_topic}/meta/driver", self.driver),
        ]
        for control in CONTROLS:
            pairs.append((f"{self.control_topic(control.name)}/meta/type", control.type))
        for control in CONTROLS:
            pairs.append((f"{self.control_topic(control.name)}/meta/readonly", "1"))
        return pairs

    def publish(self, frame: DecodedFrame) -> None:
        """Push every control of `frame` to the sink."""
        for topic, payload in self.render(frame):
            self.sink.publish(topic, payload, retained=True)

    def publish_meta(self) -> None:
        """Push the static device description once."""
        pairs = self.meta()
        for topic, payload in pairs:
            self.sink.publish(topic, payload, retained=True)
        logger.info(f"Published {len(pairs)} meta topics under {self.device_topic}")
