"""
Wiegand Bridge Main Entry Point
===============================

Command-line entry point: loads settings, acquires the GPIO lines and the
MQTT connection, publishes device meta and runs the bridge loop until
SIGINT/SIGTERM.

Startup Failures (exit status 1):
    - Invalid configuration
    - GPIO lines cannot be claimed (or lgpio is not installed)
    - MQTT broker unreachable

Usage:
    wiegand-bridge [--config PATH] [--d0 N] [--d1 N] [--chip N]
                   [--device ID] [--mqtt-host HOST] [--mqtt-port PORT]
                   [--skip-meta] [--swap-lines] [--invert-bits]
                   [--reverse-bits] [--dry-run] [--log-level LEVEL]
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

import yaml

from wiegand_bridge import __version__
from wiegand_bridge.config import Settings, load_config, setup_logging
from wiegand_bridge.errors import WiegandBridgeError
from wiegand_bridge.gpio import LgpioEdgeSource, _LGPIO_AVAILABLE
from wiegand_bridge.gpio.source import EdgeSource
from wiegand_bridge.publish import MemorySink, MqttSink, PublishSink
from wiegand_bridge.service import WiegandService
from wiegand_bridge.status import start_status_server


logger = logging.getLogger(__name__)


# =============================================================================
# Command Line
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wiegand-bridge",
        description="Decode Wiegand card reads from GPIO and publish them over MQTT",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--d0", type=int, help="GPIO line offset of D0")
    parser.add_argument("--d1", type=int, help="GPIO line offset of D1")
    parser.add_argument("--chip", type=int, help="gpiochip index")
    parser.add_argument("--device", help="Device id used in MQTT topics")
    parser.add_argument("--mqtt-host", help="MQTT broker host")
    parser.add_argument("--mqtt-port", type=int, help="MQTT broker port")
    parser.add_argument("--skip-meta", action="store_true", help="Do not publish meta topics")
    parser.add_argument("--swap-lines", action="store_true", help="Treat D0 pulses as ones")
    parser.add_argument("--invert-bits", action="store_true", help="Invert bits before decoding")
    parser.add_argument("--reverse-bits", action="store_true", help="Reverse bits before decoding")
    parser.add_argument("--dry-run", action="store_true", help="Log publications instead of using MQTT")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Translate parsed flags into a nested settings override dict."""
    overrides: dict = {}

    def put(section: str, key: str, value) -> None:
        overrides.setdefault(section, {})[key] = value

    if args.d0 is not None:
        put("gpio", "d0", args.d0)
    if args.d1 is not None:
        put("gpio", "d1", args.d1)
    if args.chip is not None:
        put("gpio", "chip", args.chip)
    if args.device:
        put("device", "device_id", args.device)
    if args.mqtt_host:
        put("mqtt", "host", args.mqtt_host)
    if args.mqtt_port is not None:
        put("mqtt", "port", args.mqtt_port)
    if args.skip_meta:
        put("mqtt", "skip_meta", True)
    if args.swap_lines:
        put("capture", "swap_lines", True)
    if args.invert_bits:
        put("decode", "invert_bits", True)
    if args.reverse_bits:
        put("decode", "reverse_bits", True)
    if args.log_level:
        put("logging", "level", args.log_level)
    return overrides


# =============================================================================
# Component Factories
# =============================================================================

def create_edge_source(settings: Settings) -> EdgeSource:
    """
    Open the GPIO edge source.

    Fails fast if lgpio is not installed.
    """
    if not _LGPIO_AVAILABLE:
        raise RuntimeError(
            "GPIO capture requires lgpio. Install with: pip install lgpio"
        )
    source = LgpioEdgeSource(
        chip=settings.gpio.chip,
        d0=settings.gpio.d0,
        d1=settings.gpio.d1,
        pull_up=settings.gpio.pull_up,
    )
    source.open()
    return source


def create_sink(settings: Settings, dry_run: bool = False) -> PublishSink:
    """Connect the publish sink."""
    if dry_run:
        logger.info("Dry run: publications are logged, not sent")
        return MemorySink(echo=True, record=False)

    sink = MqttSink(
        host=settings.mqtt.host,
        port=settings.mqtt.port,
        keepalive=settings.mqtt.keepalive,
        client_id=settings.mqtt.client_id,
    )
    sink.connect()
    return sink


# =============================================================================
# Main
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the bridge.

    Args:
        argv: Command-line arguments, sys.argv[1:] when None

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    # ValidationError is a ValueError subclass
    try:
        settings = load_config(args.config, overrides_from_args(args))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"wiegand-bridge: invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(settings)
    logger.info(f"Starting wiegand-bridge {__version__}")

    sink: Optional[PublishSink] = None
    source: Optional[EdgeSource] = None
    try:
        sink = create_sink(settings, dry_run=args.dry_run)
        source = create_edge_source(settings)
    except (WiegandBridgeError, RuntimeError) as e:
        logger.error(f"Startup failed: {e}")
        if source is not None:
            source.close()
        if sink is not None:
            sink.close()
        return 1

    service = WiegandService.from_settings(settings, source, sink)
    if not settings.mqtt.skip_meta:
        service.publisher.publish_meta()

    if settings.server.enabled:
        start_status_server(service, settings.server.host, settings.server.port)

    stop_event = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping...")
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        service.run(stop_event)
    finally:
        source.close()
        sink.close()

    logger.info("Shutdown complete")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
