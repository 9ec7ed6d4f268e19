# -*- coding: utf-8 -*-
"""MQTT Statistics Module.

Provides statistics tracking for MQTT client operations including message
counts, success rates, and connection events.
"""

from dataclasses import dataclass, fields
from typing import Optional


@dataclass
class MQTTStatistics:
    """MQTT client statistics for monitoring.

    All counters are thread-safe when accessed through MQTTClient methods.

    Attributes:
        messages_sent: Publishes that completed successfully.
        messages_failed: Publishes the client rejected.
        messages_received: Deliveries passed to a message handler.
        bytes_sent: Total bytes of payload data published.
        bytes_received: Total bytes of payload data received.
        last_send_time: Timestamp of the last publish (Unix timestamp).
        last_receive_time: Timestamp of the last delivery (Unix timestamp).
        connection_count: Number of successful connections.
        disconnect_count: Number of disconnections.
    """

    messages_sent: int = 0
    messages_failed: int = 0
    messages_received: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    last_send_time: Optional[float] = None
    last_receive_time: Optional[float] = None
    connection_count: int = 0
    disconnect_count: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate message delivery success rate.

        Returns:
            Success rate as a float between 0.0 and 1.0.
            Returns 1.0 if no messages have been sent.
        """
        total = self.messages_sent + self.messages_failed
        if total == 0:
            return 1.0
        return self.messages_sent / total

    def reset(self) -> None:
        """Reset all statistics to initial values."""
        for f in fields(self):
            setattr(self, f.name, f.default)

    def copy(self) -> "MQTTStatistics":
        """Create a copy of current statistics.

        Returns:
            New MQTTStatistics instance with copied values.
        """
        return MQTTStatistics(**{f.name: getattr(self, f.name) for f in fields(self)})
