# -*- coding: utf-8 -*-
"""MQTT Configuration Module.

Provides type-safe configuration management for MQTT client connections.
Supports creation from dictionaries and from ``MQTT_*`` environment variables.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from core.constants import (
    CHANNEL_CAPACITY,
    DEFAULT_BROKER,
    DEFAULT_TOPIC,
    DISCONNECT_QUIESCE_MS,
    PUBLISH_INTERVAL,
    PUBLISH_QOS,
    PUBLISHER_CLIENT_ID,
    SUBSCRIBE_QOS,
)


SUPPORTED_SCHEMES = ("tcp", "mqtt")


@dataclass
class MQTTConfig:
    """MQTT client configuration.

    Attributes:
        broker: Broker URI in the form 'tcp://host:port'.
        client_id: Client identifier, unique per broker connection.
        topic: Topic published to or subscribed on.
        publish_qos: QoS used for publishing (0, 1, or 2).
        subscribe_qos: QoS requested when subscribing (0, 1, or 2).
        retain: Retain flag for published messages.
        keepalive: Connection keepalive interval in seconds.
        connect_timeout: Maximum time to wait for CONNACK in seconds.
        operation_timeout: Maximum time to wait for SUBACK/UNSUBACK in seconds.
        disconnect_quiesce_ms: Grace period for in-flight work on disconnect.
        publish_interval: Delay between publisher ticks in seconds.
        queue_max_size: Capacity of the subscriber's internal channels.
    """

    # Connection settings
    broker: str = DEFAULT_BROKER
    client_id: str = PUBLISHER_CLIENT_ID

    # Topic settings
    topic: str = DEFAULT_TOPIC
    publish_qos: int = PUBLISH_QOS
    subscribe_qos: int = SUBSCRIBE_QOS
    retain: bool = False

    # Connection parameters
    keepalive: int = 60
    connect_timeout: float = 30.0
    operation_timeout: float = 10.0
    disconnect_quiesce_ms: int = DISCONNECT_QUIESCE_MS

    # Loop and queue settings
    publish_interval: float = PUBLISH_INTERVAL
    queue_max_size: int = CHANNEL_CAPACITY

    @property
    def host(self) -> str:
        """Broker hostname parsed from the broker URI."""
        return self.split_broker()[0]

    @property
    def port(self) -> int:
        """Broker port parsed from the broker URI."""
        return self.split_broker()[1]

    def split_broker(self) -> Tuple[str, int]:
        """Split the broker URI into host and port.

        Returns:
            (host, port) tuple. Port defaults to 1883.

        Raises:
            ValueError: If the URI is malformed or uses an unsupported scheme.
        """
        parts = urlsplit(self.broker)
        if parts.scheme not in SUPPORTED_SCHEMES:
            raise ValueError(
                f"broker scheme must be one of {SUPPORTED_SCHEMES}, got {self.broker!r}"
            )
        if not parts.hostname:
            raise ValueError(f"broker host cannot be empty, got {self.broker!r}")
        port = parts.port if parts.port is not None else 1883
        return parts.hostname, port

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        host, port = self.split_broker()

        if not (1 <= port <= 65535):
            raise ValueError(f"port must be between 1 and 65535, got {port}")

        if not self.client_id:
            raise ValueError("client_id cannot be empty")

        if not self.topic:
            raise ValueError("topic cannot be empty")

        if any(ch in self.topic for ch in "+#"):
            raise ValueError(f"topic cannot contain wildcards, got {self.topic!r}")

        for name in ("publish_qos", "subscribe_qos"):
            qos = getattr(self, name)
            if qos not in (0, 1, 2):
                raise ValueError(f"{name} must be 0, 1, or 2, got {qos}")

        if self.keepalive <= 0:
            raise ValueError(f"keepalive must be positive, got {self.keepalive}")

        if self.connect_timeout <= 0:
            raise ValueError(
                f"connect_timeout must be positive, got {self.connect_timeout}"
            )

        if self.operation_timeout <= 0:
            raise ValueError(
                f"operation_timeout must be positive, got {self.operation_timeout}"
            )

        if self.disconnect_quiesce_ms < 0:
            raise ValueError(
                f"disconnect_quiesce_ms must be non-negative, got {self.disconnect_quiesce_ms}"
            )

        if self.publish_interval < 0:
            raise ValueError(
                f"publish_interval must be non-negative, got {self.publish_interval}"
            )

        if self.queue_max_size <= 0:
            raise ValueError(
                f"queue_max_size must be positive, got {self.queue_max_size}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return {
            "broker": self.broker,
            "client_id": self.client_id,
            "topic": self.topic,
            "publish_qos": self.publish_qos,
            "subscribe_qos": self.subscribe_qos,
            "retain": self.retain,
            "keepalive": self.keepalive,
            "connect_timeout": self.connect_timeout,
            "operation_timeout": self.operation_timeout,
            "disconnect_quiesce_ms": self.disconnect_quiesce_ms,
            "publish_interval": self.publish_interval,
            "queue_max_size": self.queue_max_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MQTTConfig":
        """Create configuration from dictionary.

        Accepts 'host'/'port' in place of 'broker'; they are combined into a
        tcp:// URI. Unknown keys are ignored.

        Args:
            data: Configuration dictionary.

        Returns:
            MQTTConfig instance.
        """
        defaults = cls()

        broker = data.get("broker")
        if broker is None and (data.get("host") or data.get("port")):
            host = data.get("host") or "localhost"
            port = int(data.get("port") or 1883)
            broker = f"tcp://{host}:{port}"

        return cls(
            broker=str(broker or defaults.broker),
            client_id=str(data.get("client_id") or defaults.client_id),
            topic=str(data.get("topic") or defaults.topic),
            publish_qos=int(data.get("publish_qos", defaults.publish_qos)),
            subscribe_qos=int(data.get("subscribe_qos", defaults.subscribe_qos)),
            retain=bool(data.get("retain", defaults.retain)),
            keepalive=int(data.get("keepalive", defaults.keepalive)),
            connect_timeout=float(data.get("connect_timeout", defaults.connect_timeout)),
            operation_timeout=float(
                data.get("operation_timeout", defaults.operation_timeout)
            ),
            disconnect_quiesce_ms=int(
                data.get("disconnect_quiesce_ms", defaults.disconnect_quiesce_ms)
            ),
            publish_interval=float(data.get("publish_interval", defaults.publish_interval)),
            queue_max_size=int(data.get("queue_max_size", defaults.queue_max_size)),
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "MQTTConfig":
        """Create configuration from MQTT_* environment variables.

        Recognized variables: MQTT_BROKER, MQTT_CLIENT_ID, MQTT_TOPIC.
        Keyword overrides take precedence over the environment; None values
        are ignored.

        Args:
            environ: Environment mapping (defaults to os.environ).
            **overrides: Field values that win over the environment.

        Returns:
            MQTTConfig instance.
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for key, var in (
            ("broker", "MQTT_BROKER"),
            ("client_id", "MQTT_CLIENT_ID"),
            ("topic", "MQTT_TOPIC"),
        ):
            if env.get(var):
                data[key] = env[var]

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)
