"""
Model Tests
===========
"""

import pytest
from pydantic import ValidationError

from wiegand_bridge.models import (
    DecodeError,
    DecodedFrame,
    Edge,
    Line,
    RawFrame,
    WiegandFormat,
)
from wiegand_bridge.models.frame import bits_to_int, bits_to_text


def make(**overrides) -> DecodedFrame:
    fields = dict(
        sequence_counter=1,
        bits="10000000100000000000000010",
        length=26,
        raw_value=int("10000000100000000000000010", 2),
        facility=1,
        card=1,
        format=WiegandFormat.W26,
        error=DecodeError.NONE,
    )
    fields.update(overrides)
    return DecodedFrame(**fields)


class TestRawFrame:
    def test_length(self):
        assert RawFrame(bits=(1, 0, 1), sequence_counter=3).length == 3

    def test_repr_shows_bits(self):
        assert "bits=101" in repr(RawFrame(bits=(1, 0, 1), sequence_counter=3))

    def test_frozen(self):
        frame = RawFrame(bits=(1,), sequence_counter=1)
        with pytest.raises(AttributeError):
            frame.sequence_counter = 2


class TestEdge:
    def test_fields(self):
        edge = Edge(Line.D1, 1234)
        assert edge.line == Line.D1
        assert edge.timestamp_ns == 1234


class TestDecodedFrame:
    def test_success(self):
        frame = make()
        assert frame.ok
        assert frame.format.value == "w26"

    def test_failure(self):
        frame = make(
            facility=None,
            card=None,
            format=WiegandFormat.UNKNOWN,
            error=DecodeError.PARITY_FAIL,
        )
        assert not frame.ok
        assert frame.error.value == "parity_fail"

    def test_decoded_requires_fields(self):
        with pytest.raises(ValidationError):
            make(card=None)

    def test_decoded_rejects_error(self):
        with pytest.raises(ValidationError):
            make(error=DecodeError.LEN_MISMATCH)

    def test_unknown_requires_error(self):
        with pytest.raises(ValidationError):
            make(facility=None, card=None, format=WiegandFormat.UNKNOWN)

    def test_unknown_rejects_fields(self):
        with pytest.raises(ValidationError):
            make(format=WiegandFormat.UNKNOWN, error=DecodeError.PARITY_FAIL)

    def test_bits_must_be_binary(self):
        with pytest.raises(ValidationError):
            make(bits="10201")

    def test_raw_value_fits_64_bits(self):
        with pytest.raises(ValidationError):
            make(raw_value=1 << 64)

    def test_counter_starts_at_one(self):
        with pytest.raises(ValidationError):
            make(sequence_counter=0)

    def test_frozen(self):
        frame = make()
        with pytest.raises(ValidationError):
            frame.card = 2

    def test_model_dump_uses_wire_values(self):
        dumped = make().model_dump(mode="json")
        assert dumped["format"] == "w26"
        assert dumped["error"] == ""


class TestBitHelpers:
    def test_text(self):
        assert bits_to_text((1, 0, 0, 1)) == "1001"

    def test_int(self):
        assert bits_to_int((1, 0, 0, 1)) == 9

    def test_empty(self):
        assert bits_to_int(()) == 0

    def test_truncates_to_low_bits(self):
        assert bits_to_int((1,) + (0,) * 64) == 0
        assert bits_to_int((1, 1, 0), width=2) == 2
