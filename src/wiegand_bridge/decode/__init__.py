"""
Decode Module
=============

Format decoding for completed Wiegand frames.

Components:
    - transforms: Named bit transforms and the polarity/order search list
    - formats: W26/W34 layouts, parity rules, field extraction and encoding
    - salvage: Recovery of a single valid 26-bit window from noisy captures
    - FormatDecoder: RawFrame -> DecodedFrame

Pipeline:
    static transforms -> salvage -> format dispatch -> polarity/order search
"""

from wiegand_bridge.decode.formats import (
    LAYOUTS,
    W26,
    W34,
    WiegandLayout,
    check_parity,
    encode,
    extract_fields,
)
from wiegand_bridge.decode.transforms import (
    IDENTITY,
    INVERT,
    POLARITY_SEARCH_ORDER,
    REVERSE,
    REVERSE_INVERT,
    BitTransform,
    search,
)
from wiegand_bridge.decode.salvage import SalvageResult, salvage_w26
from wiegand_bridge.decode.decoder import FormatDecoder

__all__ = [
    "LAYOUTS",
    "W26",
    "W34",
    "WiegandLayout",
    "check_parity",
    "encode",
    "extract_fields",
    "IDENTITY",
    "INVERT",
    "REVERSE",
    "REVERSE_INVERT",
    "POLARITY_SEARCH_ORDER",
    "BitTransform",
    "search",
    "SalvageResult",
    "salvage_w26",
    "FormatDecoder",
]
