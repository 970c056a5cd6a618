"""
Frame Models
============

RawFrame is the immutable hand-off from the frame accumulator to the
format decoder. DecodedFrame is the decoder's output and the record the
publisher adapter maps onto MQTT controls.

DecodedFrame Invariants:
    - format w26/w34 <=> facility and card set, error empty
    - format unknown  <=> facility and card unset, error non-empty
    - length is the captured bit count, even when salvage published a
      shorter window
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from wiegand_bridge.models.codes import DecodeError, WiegandFormat


@dataclass(frozen=True, slots=True)
class RawFrame:
    """
    Completed bit sequence delimited by an idle gap.

    Attributes:
        bits: Captured bits in arrival order (0/1 ints)
        sequence_counter: 1-based counter, incremented per emitted frame
    """

    bits: Tuple[int, ...]
    sequence_counter: int

    @property
    def length(self) -> int:
        """Number of captured bits."""
        return len(self.bits)

    def __repr__(self) -> str:
        return (
            f"RawFrame(seq={self.sequence_counter}, "
            f"len={self.length}, bits={bits_to_text(self.bits)})"
        )


class DecodedFrame(BaseModel):
    """
    Decoded (or failed) Wiegand frame.

    Attributes:
        sequence_counter: Counter of the RawFrame this came from
        bits: Published bit text, normalized when a transform was selected
        length: Captured bit count
        raw_value: Published bits as big-endian unsigned int, low 64 bits
        facility: Facility code, None on failure
        card: Card number, None on failure
        format: Detected wire format
        error: Failure kind, empty on success
    """

    sequence_counter: int = Field(..., ge=1, description="Per-frame sequence counter")
    bits: str = Field(..., pattern=r"^[01]*$", description="Published bit text")
    length: int = Field(..., ge=1, description="Captured bit count")
    raw_value: int = Field(..., ge=0, lt=1 << 64, description="Published bits as integer")
    facility: Optional[int] = Field(default=None, ge=0, description="Facility code")
    card: Optional[int] = Field(default=None, ge=0, description="Card number")
    format: WiegandFormat = Field(default=WiegandFormat.UNKNOWN, description="Wire format")
    error: DecodeError = Field(default=DecodeError.NONE, description="Decode failure kind")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_outcome(self) -> "DecodedFrame":
        decoded = self.format != WiegandFormat.UNKNOWN
        if decoded:
            if self.facility is None or self.card is None:
                raise ValueError(f"{self.format.value} frame requires facility and card")
            if self.error != DecodeError.NONE:
                raise ValueError(f"{self.format.value} frame cannot carry an error")
        else:
            if self.error == DecodeError.NONE:
                raise ValueError("unknown frame requires an error")
            if self.facility is not None or self.card is not None:
                raise ValueError("unknown frame cannot carry facility or card")
        return self

    @property
    def ok(self) -> bool:
        """Whether the frame decoded successfully."""
        return self.error == DecodeError.NONE


def bits_to_text(bits: Tuple[int, ...]) -> str:
    """Render a bit tuple as a '0'/'1' string."""
    return "".join("1" if b else "0" for b in bits)


def bits_to_int(bits: Tuple[int, ...], width: int = 64) -> int:
    """
    Interpret bits as a big-endian unsigned integer.

    Values longer than `width` bits are truncated to their low bits.
    """
    value = 0
    for b in bits:
        value = (value << 1) | (1 if b else 0)
    return value & ((1 << width) - 1)
