"""
Format Decoder
==============

Turns a RawFrame into a DecodedFrame.

Steps:
    1. Static transforms: configured reversal and/or inversion
    2. Salvage: captures of 24..32 bits (not 26) may yield one W26 window
    3. Dispatch by length: 26 -> W26, 34 -> W34, else len_mismatch
    4. Polarity/order search: identity, invert, reverse, reverse+invert;
       the first transform passing parity is published

Failure Output:
    Failed frames publish the bits exactly as received, format "unknown",
    and no facility or card.
"""

import logging

from wiegand_bridge.decode.formats import LAYOUTS, check_parity, extract_fields
from wiegand_bridge.decode.salvage import NO_SALVAGE, salvage_w26
from wiegand_bridge.decode.transforms import apply_static, search
from wiegand_bridge.models.codes import DecodeError, WiegandFormat
from wiegand_bridge.models.frame import DecodedFrame, RawFrame, bits_to_int, bits_to_text


logger = logging.getLogger(__name__)


class FormatDecoder:
    """
    Wiegand format decoder.

    Attributes:
        invert_bits: Invert every bit before autodetection
        reverse_bits: Reverse bit order before autodetection
        salvage_enabled: Try noise salvage on atypical lengths
        salvage_min_bits: Shortest capture eligible for salvage
        salvage_max_bits: Longest capture eligible for salvage

    Example:
        decoder = FormatDecoder()
        decoded = decoder.decode(raw_frame)
        if decoded.ok:
            print(decoded.facility, decoded.card)
    """

    def __init__(
        self,
        invert_bits: bool = False,
        reverse_bits: bool = False,
        salvage_enabled: bool = True,
        salvage_min_bits: int = 24,
        salvage_max_bits: int = 32,
    ) -> None:
        """
        Initialize format decoder.

        Args:
            invert_bits: Static inversion
            reverse_bits: Static reversal
            salvage_enabled: Enable noise salvage
            salvage_min_bits: Lower bound of the salvage band
            salvage_max_bits: Upper bound of the salvage band
        """
        if salvage_min_bits > salvage_max_bits:
            raise ValueError("salvage_min_bits must not exceed salvage_max_bits")

        self.invert_bits = invert_bits
        self.reverse_bits = reverse_bits
        self.salvage_enabled = salvage_enabled
        self.salvage_min_bits = salvage_min_bits
        self.salvage_max_bits = salvage_max_bits

        salvage = f"{salvage_min_bits}-{salvage_max_bits}" if salvage_enabled else "off"
        logger.info(
            f"FormatDecoder initialized: invert={invert_bits}, "
            f"reverse={reverse_bits}, salvage={salvage}"
        )

    def decode(self, frame: RawFrame) -> DecodedFrame:
        """
        Decode one frame.

        Args:
            frame: Completed capture

        Returns:
            DecodedFrame, successful or carrying an error.
        """
        working = apply_static(frame.bits, reverse=self.reverse_bits, invert=self.invert_bits)

        if self.salvage_enabled:
            result = salvage_w26(working, self.salvage_min_bits, self.salvage_max_bits)
        else:
            result = NO_SALVAGE
        if result.recovered:
            logger.info(
                f"Frame {frame.sequence_counter}: salvaged 26 bits at offset "
                f"{result.offset} from {frame.length}-bit capture"
            )
            working = result.bits

        layout = LAYOUTS.get(len(working))
        if layout is None:
            logger.warning(
                f"Frame {frame.sequence_counter}: unsupported length {len(working)} "
                f"({bits_to_text(frame.bits)})"
            )
            return self._failed(frame, DecodeError.LEN_MISMATCH)

        found = search(working, lambda bits: check_parity(layout, bits))
        if found is None:
            logger.warning(
                f"Frame {frame.sequence_counter}: {layout.format.value} parity failed "
                f"for every transform ({bits_to_text(frame.bits)})"
            )
            return self._failed(frame, DecodeError.PARITY_FAIL)

        transform, bits = found
        facility, card = extract_fields(layout, bits)
        logger.info(
            f"Frame {frame.sequence_counter}: {layout.format.value} "
            f"facility={facility} card={card} (transform={transform.name})"
        )
        return DecodedFrame(
            sequence_counter=frame.sequence_counter,
            bits=bits_to_text(bits),
            length=frame.length,
            raw_value=bits_to_int(bits),
            facility=facility,
            card=card,
            format=layout.format,
            error=DecodeError.NONE,
        )

    def _failed(self, frame: RawFrame, error: DecodeError) -> DecodedFrame:
        return DecodedFrame(
            sequence_counter=frame.sequence_counter,
            bits=bits_to_text(frame.bits),
            length=frame.length,
            raw_value=bits_to_int(frame.bits),
            format=WiegandFormat.UNKNOWN,
            error=error,
        )
