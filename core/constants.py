"""Constants and error codes.

This module defines the build-time defaults shared by all three programs.
"""

from enum import IntEnum


DEFAULT_BROKER = "tcp://localhost:1883"
PUBLISHER_CLIENT_ID = "go-mqtt-client"
SUBSCRIBER_CLIENT_ID = "go-mqtt-subscriber"
DEFAULT_TOPIC = "iot-messages"

PUBLISH_QOS = 0
SUBSCRIBE_QOS = 1
DISCONNECT_QUIESCE_MS = 250
PUBLISH_INTERVAL = 1.0  # seconds

# Capacity of the subscriber's internal channels
CHANNEL_CAPACITY = 16


class ErrorCode(IntEnum):
    """Error codes, also used as process exit codes."""

    SUCCESS = 0
    UNKNOWN_ERROR = 1
    CONNECT_FAILED = 2
    SUBSCRIBE_FAILED = 3
    ENCODE_FAILED = 4
    PUBLISH_FAILED = 5
    UNSUBSCRIBE_FAILED = 6
    INVALID_CONFIG = 7


ERROR_MESSAGES = {
    ErrorCode.SUCCESS: "Success",
    ErrorCode.UNKNOWN_ERROR: "Unknown error",
    ErrorCode.CONNECT_FAILED: "Failed to connect to MQTT broker",
    ErrorCode.SUBSCRIBE_FAILED: "Failed to subscribe",
    ErrorCode.ENCODE_FAILED: "Failed to encode payload",
    ErrorCode.PUBLISH_FAILED: "Failed to publish message",
    ErrorCode.UNSUBSCRIBE_FAILED: "Failed to unsubscribe",
    ErrorCode.INVALID_CONFIG: "Invalid configuration",
}


def get_error_message(code: ErrorCode) -> str:
    """Get default error message for an error code.

    Args:
        code: Error code.

    Returns:
        Error message string.
    """
    return ERROR_MESSAGES.get(code, "Unknown error")
