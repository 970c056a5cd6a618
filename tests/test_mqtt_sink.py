"""
MQTT Sink Tests
===============

Runs MqttSink against a fake paho client; no broker needed.
"""

from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from wiegand_bridge.errors import SinkUnavailableError
from wiegand_bridge.publish import MqttSink


class FakeClient:
    """Records the paho calls MqttSink makes."""

    def __init__(self, connect_error=None, rc=mqtt.MQTT_ERR_SUCCESS):
        self.connect_error = connect_error
        self.rc = rc
        self.calls = []
        self.published = []
        self.on_connect = None
        self.on_disconnect = None

    def connect(self, host, port, keepalive):
        self.calls.append(("connect", host, port, keepalive))
        if self.connect_error:
            raise self.connect_error

    def loop_start(self):
        self.calls.append(("loop_start",))

    def loop_stop(self):
        self.calls.append(("loop_stop",))

    def disconnect(self):
        self.calls.append(("disconnect",))

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return SimpleNamespace(rc=self.rc)


def test_connect_starts_loop():
    client = FakeClient()
    sink = MqttSink("broker", 1884, keepalive=20, client=client)
    sink.connect()
    assert client.calls == [("connect", "broker", 1884, 20), ("loop_start",)]
    assert client.on_connect == sink._on_connect


def test_connect_failure():
    client = FakeClient(connect_error=ConnectionRefusedError("refused"))
    sink = MqttSink(client=client)
    with pytest.raises(SinkUnavailableError):
        sink.connect()
    assert ("loop_start",) not in client.calls


def test_publish_retained_qos0():
    client = FakeClient()
    sink = MqttSink(client=client)
    sink.publish("/devices/wiegand/controls/Len", "26")
    assert client.published == [("/devices/wiegand/controls/Len", "26", 0, True)]
    assert sink.publish_errors == 0


def test_publish_error_counted_not_raised():
    client = FakeClient(rc=mqtt.MQTT_ERR_NO_CONN)
    sink = MqttSink(client=client)
    sink.publish("/devices/wiegand/controls/Len", "26")
    assert sink.publish_errors == 1


def test_close_disconnects_then_stops_loop():
    client = FakeClient()
    sink = MqttSink(client=client)
    sink.close()
    assert client.calls == [("disconnect",), ("loop_stop",)]
    assert not sink.connected


def test_connection_callbacks():
    sink = MqttSink(client=FakeClient())
    sink._on_connect(None, None, None, SimpleNamespace(is_failure=False), None)
    assert sink.connected
    sink._on_disconnect(None, None, None, "gone", None)
    assert not sink.connected
    sink._on_connect(None, None, None, SimpleNamespace(is_failure=True), None)
    assert not sink.connected
