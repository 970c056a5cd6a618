"""
Data Models
===========

Value types flowing through the Wiegand pipeline.

Models:
    Edges:
        - Line: The two Wiegand data lines (D0, D1)
        - Edge: One timestamped falling edge on a line

    Frames:
        - RawFrame: Completed bit sequence handed to the decoder
        - DecodedFrame: Decoder output, the published record

    Codes:
        - WiegandFormat: Detected wire format (w26, w34, unknown)
        - DecodeError: Per-frame failure kinds
"""

from wiegand_bridge.models.codes import DecodeError, WiegandFormat
from wiegand_bridge.models.edge import Edge, Line
from wiegand_bridge.models.frame import DecodedFrame, RawFrame

__all__ = [
    # Edges
    "Line",
    "Edge",
    # Frames
    "RawFrame",
    "DecodedFrame",
    # Codes
    "WiegandFormat",
    "DecodeError",
]
