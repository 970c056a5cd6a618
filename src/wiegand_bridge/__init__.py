"""
Wiegand Bridge
==============

Wiegand access-control decoder for GPIO-attached card readers.

This package turns the raw, noisy two-wire pulse train of a Wiegand reader
into structured credential events (facility code, card number, counter) and
republishes them as retained MQTT controls.

Components:
    - gpio: Edge sources (lgpio hardware, deterministic mock)
    - capture: Pulse filter and timeout-driven frame accumulator
    - decode: Format decoder with polarity/order search and noise salvage
    - publish: Control mapping and MQTT sink
    - service: Single-threaded bridge loop tying the pipeline together

Example:
    from wiegand_bridge.config import load_config
    from wiegand_bridge.service import WiegandService

    settings = load_config()
    service = WiegandService.from_settings(settings, source, sink)
    service.run(stop_event)
"""

__version__ = "0.3.0"
__author__ = "Wiegand Bridge Project"

__all__ = [
    "__version__",
]
