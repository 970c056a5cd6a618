"""
Noise Salvage
=============

Recovery of a 26-bit frame from a capture with a few stray or missing
bits (contact bounce that slipped past the debounce, a late reader wakeup).

A 26-bit window slides over every start offset of the capture and each
window is tested against the W26 parity rule as-is (no polarity variants).
The capture is only rewritten when EXACTLY ONE window passes; zero or
several matches leave it untouched, since picking one would be a guess.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from wiegand_bridge.decode.formats import LAYOUTS, W26, check_parity


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SalvageResult:
    """
    Outcome of a salvage attempt.

    Attributes:
        bits: Adopted 26-bit window, None if salvage made no change
        offset: Start offset of the adopted window, None if none adopted
        matches: Number of windows that passed parity
    """

    bits: Optional[Tuple[int, ...]]
    offset: Optional[int]
    matches: int

    @property
    def recovered(self) -> bool:
        return self.bits is not None


NO_SALVAGE = SalvageResult(bits=None, offset=None, matches=0)


def is_salvage_candidate(length: int, min_bits: int = 24, max_bits: int = 32) -> bool:
    """Whether a capture of `length` bits is eligible for salvage."""
    return length not in LAYOUTS and min_bits <= length <= max_bits


def salvage_w26(
    bits: Sequence[int],
    min_bits: int = 24,
    max_bits: int = 32,
) -> SalvageResult:
    """
    Look for a single valid W26 window inside `bits`.

    Args:
        bits: Working sequence (static transforms already applied)
        min_bits: Shortest eligible capture
        max_bits: Longest eligible capture

    Returns:
        SalvageResult; `bits` is set only on a unique match.
    """
    if not is_salvage_candidate(len(bits), min_bits, max_bits):
        return NO_SALVAGE

    window = W26.length
    passing = [
        offset
        for offset in range(len(bits) - window + 1)
        if check_parity(W26, bits[offset:offset + window])
    ]

    if len(passing) != 1:
        logger.debug(
            f"Salvage on {len(bits)}-bit capture: {len(passing)} matching windows, no change"
        )
        return SalvageResult(bits=None, offset=None, matches=len(passing))

    offset = passing[0]
    logger.debug(f"Salvaged W26 window at offset {offset} from {len(bits)}-bit capture")
    return SalvageResult(
        bits=tuple(bits[offset:offset + window]),
        offset=offset,
        matches=1,
    )
