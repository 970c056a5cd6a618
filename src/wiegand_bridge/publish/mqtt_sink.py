"""
MQTT Sink
=========

paho-mqtt implementation of PublishSink.

The network loop runs in paho's own background thread (loop_start), so
publish() only queues the message and returns. Reconnection after a
dropped connection is left to paho; the bridge never retries.

Design Rules:
    - Connection failure at startup raises SinkUnavailableError (fatal)
    - Publish return codes other than success are logged, never raised
    - QoS 0, retained
"""

import logging
from typing import Optional

import paho.mqtt.client as mqtt

from wiegand_bridge.errors import SinkUnavailableError


logger = logging.getLogger(__name__)


class MqttSink:
    """
    Publish sink backed by an MQTT broker.

    Attributes:
        host: Broker host
        port: Broker port
        keepalive: Keepalive interval in seconds
        publish_errors: Publications the client refused

    Example:
        sink = MqttSink("localhost", 1883)
        sink.connect()
        sink.publish("/devices/wiegand/controls/Len", "26")
        sink.close()
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1883,
        keepalive: int = 30,
        client_id: str = "",
        client: Optional[mqtt.Client] = None,
    ) -> None:
        """
        Initialize MQTT sink.

        Args:
            host: Broker host
            port: Broker port
            keepalive: Keepalive in seconds
            client_id: MQTT client id, empty for a broker-assigned one
            client: Preconfigured paho client (tests)
        """
        self.host = host
        self.port = port
        self.keepalive = keepalive
        self.publish_errors: int = 0
        self._connected = False

        if client is None:
            client = mqtt.Client(
                mqtt.CallbackAPIVersion.VERSION2,
                client_id=client_id,
            )
        self._client = client
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect

    @property
    def connected(self) -> bool:
        """Whether the broker acknowledged the last connection."""
        return self._connected

    def connect(self) -> None:
        """
        Connect to the broker and start the network loop.

        Raises:
            SinkUnavailableError: The broker could not be reached.
        """
        logger.info(f"Connecting to MQTT broker {self.host}:{self.port}")
        try:
            self._client.connect(self.host, self.port, self.keepalive)
        except (OSError, ValueError) as e:
            raise SinkUnavailableError(
                f"Cannot connect to MQTT broker {self.host}:{self.port}: {e}"
            ) from e
        self._client.loop_start()

    def publish(self, topic: str, payload: str, retained: bool = True) -> None:
        info = self._client.publish(topic, payload, qos=0, retain=retained)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self.publish_errors += 1
            logger.warning(
                f"Publish to {topic} failed: {mqtt.error_string(info.rc)}"
            )

    def close(self) -> None:
        """Stop the network loop and disconnect."""
        self._client.disconnect()
        self._client.loop_stop()
        self._connected = False
        logger.info("MQTT sink closed")

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            logger.error(f"MQTT connection refused: {reason_code}")
            return
        self._connected = True
        logger.info(f"Connected to MQTT broker {self.host}:{self.port}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        self._connected = False
        logger.warning(f"Disconnected from MQTT broker: {reason_code}")
