"""Shared utilities module.

This module provides common utilities used by the publishers and the
subscriber:
- Logger: Centralized logging utilities
- ShutdownSignal: SIGINT/SIGTERM shutdown latch
- Time utilities: RFC 3339 formatting and parsing, Timer
- MQTT: Token-based MQTT client
"""

from .logger import Logger, get_logger
from .signals import ShutdownSignal
from .time_utils import Timer, format_rfc3339, now, parse_rfc3339
from .mqtt import InboundMessage, MQTTClient, MQTTConfig, MQTTStatistics, Token

__all__ = [
    "Logger",
    "get_logger",
    "ShutdownSignal",
    "Timer",
    "format_rfc3339",
    "now",
    "parse_rfc3339",
    "InboundMessage",
    "MQTTClient",
    "MQTTConfig",
    "MQTTStatistics",
    "Token",
]
