# -*- coding: utf-8 -*-
"""MQTT Message Module.

Provides the inbound message structure handed from the client's delivery
thread to the subscriber pipeline.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class InboundMessage:
    """Message received from the broker.

    Created once per delivery by the ingress adapter and consumed once by
    the processor.

    Attributes:
        topic: Topic the message was published to.
        payload: Raw payload bytes.
        qos: QoS the message was delivered with.
        retain: Whether the broker replayed a retained message.
        mid: Message identifier (0 for QoS 0 deliveries).
        received_at: Receive timestamp (auto-generated).
    """

    topic: str
    payload: bytes
    qos: int = 0
    retain: bool = False
    mid: int = 0
    received_at: float = field(default_factory=time.time)

    @classmethod
    def from_paho(cls, message: Any) -> "InboundMessage":
        """Build from a paho-mqtt MQTTMessage.

        Args:
            message: paho.mqtt.client.MQTTMessage instance.

        Returns:
            InboundMessage with copied fields.
        """
        return cls(
            topic=message.topic,
            payload=bytes(message.payload),
            qos=message.qos,
            retain=bool(message.retain),
            mid=message.mid,
        )

    def payload_text(self, errors: str = "replace") -> str:
        """Decode the payload as UTF-8.

        Args:
            errors: Codec error handling scheme.

        Returns:
            Decoded payload.
        """
        return self.payload.decode("utf-8", errors=errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary representation.

        Returns:
            Dictionary containing all message fields, payload decoded.
        """
        return {
            "topic": self.topic,
            "payload": self.payload_text(),
            "qos": self.qos,
            "retain": self.retain,
            "mid": self.mid,
            "received_at": self.received_at,
        }
