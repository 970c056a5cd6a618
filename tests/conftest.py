"""
Test Configuration
==================

Pytest fixtures and helpers for the Wiegand bridge tests.
"""

import os

import pytest

from wiegand_bridge.config import Settings
from wiegand_bridge.decode.formats import W26, W34, encode
from wiegand_bridge.publish.sink import MemorySink


def text(bits) -> str:
    """Bit tuple as '0'/'1' text."""
    return "".join(str(b) for b in bits)


def bits(s: str) -> tuple:
    """'0'/'1' text as bit tuple."""
    return tuple(int(c) for c in s)


def invert(seq) -> tuple:
    return tuple(1 - b for b in seq)


def reverse(seq) -> tuple:
    return tuple(reversed(seq))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep WIEGAND_* variables from the host out of every test."""
    for key in list(os.environ):
        if key.startswith("WIEGAND_"):
            monkeypatch.delenv(key)


@pytest.fixture
def settings():
    """Default settings, independent of any config file."""
    return Settings()


@pytest.fixture
def sink():
    """Recording sink."""
    return MemorySink()


@pytest.fixture
def card_26():
    """Valid W26 frame for facility 12, card 3456."""
    return encode(W26, 12, 3456)


@pytest.fixture
def card_34():
    """Valid W34 frame for facility 1000, card 4242."""
    return encode(W34, 1000, 4242)


@pytest.fixture
def corrupted_26(card_26):
    """W26 frame with one flipped data bit in the even-parity half."""
    corrupted = list(card_26)
    corrupted[5] ^= 1
    return tuple(corrupted)
