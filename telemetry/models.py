"""Telemetry data model.

This module provides the telemetry record published by the device-data
publisher, the per-device-type payload variants, and the stored form of a
record with bookkeeping attributes.

Wire format::

    {"time": "<RFC 3339>", "device_id": "bracelet-123",
     "device_type": "bracelet", "device_data": {"heart_rate": 72}}
"""

import itertools
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Union

from core.exceptions import EncodeFailure
from utils.time_utils import format_rfc3339, now, parse_rfc3339


@dataclass(frozen=True)
class Bracelet:
    """Reading from a bracelet device."""

    DEVICE_TYPE: ClassVar[str] = "bracelet"

    heart_rate: int

    @property
    def device_type(self) -> str:
        return self.DEVICE_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {"heart_rate": self.heart_rate}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bracelet":
        """Build from a decoded device_data object.

        Raises:
            ValueError: If heart_rate is missing or not an integer.
        """
        heart_rate = data.get("heart_rate")
        if isinstance(heart_rate, bool) or not isinstance(heart_rate, int):
            raise ValueError(f"heart_rate must be an integer, got {heart_rate!r}")
        return cls(heart_rate=heart_rate)


@dataclass(frozen=True)
class UnknownDevice:
    """Payload of a device type this program does not model.

    Keeps the raw device_data object so it re-encodes unchanged.
    """

    device_type: str
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)


DeviceData = Union[Bracelet, UnknownDevice]

DEVICE_DATA_TYPES = {
    Bracelet.DEVICE_TYPE: Bracelet,
}


def decode_device_data(device_type: str, data: Any) -> DeviceData:
    """Decode a device_data object into its variant.

    Unknown device types and payloads that do not fit their declared type
    decode to UnknownDevice.

    Args:
        device_type: Declared device type.
        data: Decoded JSON value of device_data.

    Returns:
        DeviceData variant.
    """
    if not isinstance(data, dict):
        return UnknownDevice(device_type, {"value": data})

    variant = DEVICE_DATA_TYPES.get(device_type)
    if variant is not None:
        try:
            return variant.from_dict(data)
        except ValueError:
            pass
    return UnknownDevice(device_type, data)


@dataclass(frozen=True)
class TelemetryRecord:
    """Single telemetry reading.

    Attributes:
        time: Instant the record was generated.
        device_id: Short device identifier.
        device_type: Device category, selects the device_data variant.
        device_data: Device-specific reading.
    """

    time: datetime
    device_id: str
    device_type: str
    device_data: DeviceData

    @classmethod
    def create(
        cls,
        device_id: str,
        device_data: DeviceData,
        timestamp: Optional[datetime] = None,
    ) -> "TelemetryRecord":
        """Create a record stamped with the current time.

        Args:
            device_id: Device identifier.
            device_data: Device reading; its type sets device_type.
            timestamp: Override for the generation instant.

        Returns:
            TelemetryRecord instance.
        """
        return cls(
            time=timestamp or now(),
            device_id=device_id,
            device_type=device_data.device_type,
            device_data=device_data,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-ready wire structure."""
        return {
            "time": format_rfc3339(self.time),
            "device_id": self.device_id,
            "device_type": self.device_type,
            "device_data": self.device_data.to_dict(),
        }

    def to_json(self) -> bytes:
        """Encode the record as compact UTF-8 JSON.

        Returns:
            Encoded payload.

        Raises:
            EncodeFailure: If the record cannot be serialized.
        """
        try:
            return json.dumps(
                self.to_dict(),
                ensure_ascii=False,
                allow_nan=False,
                separators=(",", ":"),
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodeFailure(str(e)) from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TelemetryRecord":
        """Build a record from its wire structure.

        Raises:
            ValueError: If time is not RFC 3339 or required fields are missing.
        """
        try:
            device_type = str(data["device_type"])
            return cls(
                time=parse_rfc3339(data["time"]),
                device_id=str(data["device_id"]),
                device_type=device_type,
                device_data=decode_device_data(device_type, data.get("device_data")),
            )
        except KeyError as e:
            raise ValueError(f"missing field: {e.args[0]}") from e

    @classmethod
    def from_json(cls, payload: Union[bytes, str]) -> "TelemetryRecord":
        """Decode a record from a JSON payload.

        Raises:
            ValueError: If the payload is not a valid telemetry record.
        """
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise ValueError("telemetry payload must be a JSON object")
        return cls.from_dict(data)

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"{{Time:{format_rfc3339(self.time)} DeviceId:{self.device_id} "
            f"DeviceType:{self.device_type} DeviceData:{self.device_data.to_dict()}}}"
        )


class IdSequence:
    """Thread-safe monotonically increasing id source, starting at 1."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


@dataclass
class StoredTelemetry:
    """Persisted form of a telemetry record.

    Not used at runtime. Mirrors the record with bookkeeping attributes and
    device_data kept as pre-encoded JSON.

    Attributes:
        id: Monotonically assigned identifier.
        created_at: Creation instant.
        updated_at: Last update instant.
        time: Record generation instant.
        device_id: Device identifier.
        device_type: Device category.
        device_data: device_data object encoded as JSON.
    """

    id: int
    created_at: datetime
    updated_at: datetime
    time: datetime
    device_id: str
    device_type: str
    device_data: str

    @classmethod
    def from_record(
        cls,
        record: TelemetryRecord,
        ids: IdSequence,
        timestamp: Optional[datetime] = None,
    ) -> "StoredTelemetry":
        """Wrap a record with bookkeeping attributes.

        Raises:
            EncodeFailure: If device_data cannot be serialized.
        """
        stamp = timestamp or now()
        try:
            blob = json.dumps(
                record.device_data.to_dict(),
                allow_nan=False,
                separators=(",", ":"),
            )
        except (TypeError, ValueError) as e:
            raise EncodeFailure(str(e)) from e

        return cls(
            id=ids.next(),
            created_at=stamp,
            updated_at=stamp,
            time=record.time,
            device_id=record.device_id,
            device_type=record.device_type,
            device_data=blob,
        )

    def to_record(self) -> TelemetryRecord:
        """Decode back into a TelemetryRecord."""
        return TelemetryRecord(
            time=self.time,
            device_id=self.device_id,
            device_type=self.device_type,
            device_data=decode_device_data(self.device_type, json.loads(self.device_data)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary; device_data stays an embedded JSON object."""
        return {
            "id": self.id,
            "created_at": format_rfc3339(self.created_at),
            "updated_at": format_rfc3339(self.updated_at),
            "time": format_rfc3339(self.time),
            "device_id": self.device_id,
            "device_type": self.device_type,
            "device_data": json.loads(self.device_data),
        }
