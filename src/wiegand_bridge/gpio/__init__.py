"""
GPIO Module
===========

Edge sources delivering timestamped falling edges on the D0/D1 lines.

Components:
    - EdgeSource: Protocol consumed by the bridge loop
    - MockEdgeSource: Scripted edges on a virtual clock (tests, dry runs)
    - LgpioEdgeSource: Linux gpiochip alerts via lgpio (production)
"""

from wiegand_bridge.gpio.source import EdgeSource
from wiegand_bridge.gpio.mock import MockEdgeSource, edges_from_bits

# lgpio only exists on Linux hosts with gpiochip support
try:
    from wiegand_bridge.gpio.lgpio_source import LgpioEdgeSource
    _LGPIO_AVAILABLE = True
except ImportError:
    _LGPIO_AVAILABLE = False
    LgpioEdgeSource = None  # type: ignore

__all__ = [
    "EdgeSource",
    "MockEdgeSource",
    "edges_from_bits",
    "LgpioEdgeSource",
    "_LGPIO_AVAILABLE",
]
