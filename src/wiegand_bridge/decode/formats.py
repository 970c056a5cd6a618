"""
Wiegand Layouts
===============

Bit layouts of the two supported Wiegand formats.

    W26:  P FFFFFFFF CCCCCCCCCCCCCCCC P
          0 1......8 9.............24 25
    W34:  P FFFFFFFFFFFFFFFF CCCCCCCCCCCCCCCC P
          0 1.............16 17............32 33

Parity:
    - bit 0 is EVEN parity over the first half of the data bits
      (bit 0 == XOR of that half)
    - the last bit is ODD parity over the second half
      (last bit != XOR of that half)

Fields are read most-significant bit first.
"""

from dataclasses import dataclass
from functools import reduce
from operator import xor
from typing import Dict, List, Sequence, Tuple

from wiegand_bridge.models.codes import WiegandFormat


@dataclass(frozen=True, slots=True)
class WiegandLayout:
    """
    Positions of parity and data fields in one Wiegand format.

    Attributes:
        format: Format code published for this layout
        length: Total frame length in bits
        even_span: (start, stop) of bits covered by the leading parity bit
        odd_span: (start, stop) of bits covered by the trailing parity bit
        facility_span: (start, stop) of the facility field
        card_span: (start, stop) of the card field
    """

    format: WiegandFormat
    length: int
    even_span: Tuple[int, int]
    odd_span: Tuple[int, int]
    facility_span: Tuple[int, int]
    card_span: Tuple[int, int]

    @property
    def facility_bits(self) -> int:
        return self.facility_span[1] - self.facility_span[0]

    @property
    def card_bits(self) -> int:
        return self.card_span[1] - self.card_span[0]


W26 = WiegandLayout(
    format=WiegandFormat.W26,
    length=26,
    even_span=(1, 13),
    odd_span=(13, 25),
    facility_span=(1, 9),
    card_span=(9, 25),
)

W34 = WiegandLayout(
    format=WiegandFormat.W34,
    length=34,
    even_span=(1, 17),
    odd_span=(17, 33),
    facility_span=(1, 17),
    card_span=(17, 33),
)

LAYOUTS: Dict[int, WiegandLayout] = {
    W26.length: W26,
    W34.length: W34,
}


def _parity(bits: Sequence[int], span: Tuple[int, int]) -> int:
    return reduce(xor, bits[span[0]:span[1]], 0)


def _to_uint(bits: Sequence[int], span: Tuple[int, int]) -> int:
    value = 0
    for b in bits[span[0]:span[1]]:
        value = (value << 1) | b
    return value


def check_parity(layout: WiegandLayout, bits: Sequence[int]) -> bool:
    """
    Whether `bits` satisfy the layout's parity rule (no transform applied).

    Sequences of the wrong length never pass.
    """
    if len(bits) != layout.length:
        return False
    return (
        bits[0] == _parity(bits, layout.even_span)
        and bits[-1] != _parity(bits, layout.odd_span)
    )


def extract_fields(layout: WiegandLayout, bits: Sequence[int]) -> Tuple[int, int]:
    """Return (facility, card) from a layout-length sequence."""
    return _to_uint(bits, layout.facility_span), _to_uint(bits, layout.card_span)


def encode(layout: WiegandLayout, facility: int, card: int) -> Tuple[int, ...]:
    """
    Build a parity-correct frame for (facility, card).

    Args:
        layout: Target layout
        facility: Facility code, must fit the layout's facility field
        card: Card number, must fit the layout's card field

    Returns:
        Frame bits, MSB first.
    """
    if not 0 <= facility < (1 << layout.facility_bits):
        raise ValueError(f"facility {facility} out of range for {layout.format.value}")
    if not 0 <= card < (1 << layout.card_bits):
        raise ValueError(f"card {card} out of range for {layout.format.value}")

    bits: List[int] = [0] * layout.length
    for i in range(layout.facility_bits):
        shift = layout.facility_bits - 1 - i
        bits[layout.facility_span[0] + i] = (facility >> shift) & 1
    for i in range(layout.card_bits):
        shift = layout.card_bits - 1 - i
        bits[layout.card_span[0] + i] = (card >> shift) & 1

    bits[0] = _parity(bits, layout.even_span)
    bits[-1] = 1 - _parity(bits, layout.odd_span)
    return tuple(bits)
