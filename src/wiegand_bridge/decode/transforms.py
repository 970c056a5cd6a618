"""
Bit Transforms
==============

Named transforms used to resolve unknown wiring conventions.

A reader wired with swapped data lines delivers inverted bits; a reader
that shifts LSB first delivers them reversed. The decoder tries the
transforms of POLARITY_SEARCH_ORDER in order and keeps the first one whose
output satisfies the layout's parity rule.
"""

from typing import Callable, NamedTuple, Optional, Sequence, Tuple


Bits = Tuple[int, ...]


class BitTransform(NamedTuple):
    """A named bit-sequence transform."""

    name: str
    apply: Callable[[Sequence[int]], Bits]


def _identity(bits: Sequence[int]) -> Bits:
    return tuple(bits)


def _invert(bits: Sequence[int]) -> Bits:
    return tuple(1 - b for b in bits)


def _reverse(bits: Sequence[int]) -> Bits:
    return tuple(reversed(bits))


def _reverse_invert(bits: Sequence[int]) -> Bits:
    return _invert(_reverse(bits))


IDENTITY = BitTransform("identity", _identity)
INVERT = BitTransform("invert", _invert)
REVERSE = BitTransform("reverse", _reverse)
REVERSE_INVERT = BitTransform("reverse_invert", _reverse_invert)

POLARITY_SEARCH_ORDER: Tuple[BitTransform, ...] = (
    IDENTITY,
    INVERT,
    REVERSE,
    REVERSE_INVERT,
)


def search(
    bits: Sequence[int],
    predicate: Callable[[Bits], bool],
    transforms: Sequence[BitTransform] = POLARITY_SEARCH_ORDER,
) -> Optional[Tuple[BitTransform, Bits]]:
    """
    Return the first transform whose output satisfies `predicate`.

    Args:
        bits: Input sequence
        predicate: Acceptance test on a transformed sequence
        transforms: Candidates, tried in order

    Returns:
        (transform, transformed bits), or None if no candidate passes.
    """
    for transform in transforms:
        candidate = transform.apply(bits)
        if predicate(candidate):
            return transform, candidate
    return None


def apply_static(bits: Sequence[int], reverse: bool = False, invert: bool = False) -> Bits:
    """Apply configured static transforms, reversal first."""
    result = tuple(bits)
    if reverse:
        result = _reverse(result)
    if invert:
        result = _invert(result)
    return result
