"""Core definitions shared by the publishers and the subscriber.

This module provides:
- Defaults: broker URI, client identifiers and topic
- ErrorCode: Error codes doubling as process exit codes
- BrokerException and its subclasses
"""

from .constants import (
    DEFAULT_BROKER,
    PUBLISHER_CLIENT_ID,
    SUBSCRIBER_CLIENT_ID,
    DEFAULT_TOPIC,
    DISCONNECT_QUIESCE_MS,
    ErrorCode,
    get_error_message,
)
from .exceptions import (
    BrokerException,
    ConnectFailure,
    SubscribeFailure,
    UnsubscribeFailure,
    PublishFailure,
    EncodeFailure,
)

__all__ = [
    "DEFAULT_BROKER",
    "PUBLISHER_CLIENT_ID",
    "SUBSCRIBER_CLIENT_ID",
    "DEFAULT_TOPIC",
    "DISCONNECT_QUIESCE_MS",
    "ErrorCode",
    "get_error_message",
    "BrokerException",
    "ConnectFailure",
    "SubscribeFailure",
    "UnsubscribeFailure",
    "PublishFailure",
    "EncodeFailure",
]
