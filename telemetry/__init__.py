"""Telemetry module.

This module provides the telemetry data model and payload synthesis:
- TelemetryRecord: Record published by the device-data publisher
- Bracelet, UnknownDevice: device_data variants
- StoredTelemetry, IdSequence: Persisted form of a record
- PayloadSynthesizer: Pseudorandom payload source
"""

from .models import (
    Bracelet,
    DeviceData,
    IdSequence,
    StoredTelemetry,
    TelemetryRecord,
    UnknownDevice,
    decode_device_data,
)
from .synthesizer import BRACELET_DEVICE_ID, SIMPLE_MESSAGES, PayloadSynthesizer

__all__ = [
    "Bracelet",
    "DeviceData",
    "IdSequence",
    "StoredTelemetry",
    "TelemetryRecord",
    "UnknownDevice",
    "decode_device_data",
    "BRACELET_DEVICE_ID",
    "SIMPLE_MESSAGES",
    "PayloadSynthesizer",
]
