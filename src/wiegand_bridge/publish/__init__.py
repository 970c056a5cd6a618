"""
Publish Module
==============

Maps decoded frames onto MQTT controls and pushes them to a sink.

Components:
    - PublishSink: Protocol for key/value push sinks
    - MemorySink: In-process sink that records publications (dry runs, tests)
    - MqttSink: paho-mqtt sink with a background network loop
    - FramePublisherAdapter: DecodedFrame -> fixed control set
"""

from wiegand_bridge.publish.sink import MemorySink, Publication, PublishSink
from wiegand_bridge.publish.adapter import (
    CONTROLS,
    NO_VALUE,
    Control,
    FramePublisherAdapter,
)
from wiegand_bridge.publish.mqtt_sink import MqttSink

__all__ = [
    "PublishSink",
    "MemorySink",
    "Publication",
    "MqttSink",
    "Control",
    "CONTROLS",
    "NO_VALUE",
    "FramePublisherAdapter",
]
