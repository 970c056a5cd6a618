"""
Decode Codes
============

Fixed, machine-readable values published in the Format and LastError
controls. Downstream consumers match on these strings, so they must stay
stable.
"""

from enum import Enum


class WiegandFormat(str, Enum):
    """
    Detected Wiegand wire format.

    Attributes:
        W26: 26-bit layout (8-bit facility, 16-bit card)
        W34: 34-bit layout (16-bit facility, 16-bit card)
        UNKNOWN: No layout could be decoded
    """

    W26 = "w26"
    W34 = "w34"
    UNKNOWN = "unknown"


class DecodeError(str, Enum):
    """
    Per-frame decode failure.

    Attributes:
        NONE: Frame decoded successfully
        PARITY_FAIL: Length matched a layout but no bit transform passed parity
        LEN_MISMATCH: Length matched no layout (after salvage)
    """

    NONE = ""
    PARITY_FAIL = "parity_fail"
    LEN_MISMATCH = "len_mismatch"
