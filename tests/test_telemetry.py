"""Tests for the telemetry model and payload synthesizer.

This module tests the wire format of telemetry records, the device_data
variants, and the statistical properties of the synthesizer.
"""

import json
import math
import pytest
import sys

from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.exceptions import EncodeFailure
from telemetry import (
    BRACELET_DEVICE_ID,
    SIMPLE_MESSAGES,
    Bracelet,
    IdSequence,
    PayloadSynthesizer,
    StoredTelemetry,
    TelemetryRecord,
    UnknownDevice,
    decode_device_data,
)
from utils.time_utils import parse_rfc3339


FIXED_TIME = datetime(2024, 5, 1, 10, 30, 15, 250000, tzinfo=timezone(timedelta(hours=2)))


class TestBracelet:
    """Test cases for the Bracelet variant."""

    def test_device_type(self):
        """Test bracelet reports its device type."""
        assert Bracelet(heart_rate=72).device_type == "bracelet"

    def test_to_dict(self):
        """Test bracelet serializes only its reading."""
        assert Bracelet(heart_rate=72).to_dict() == {"heart_rate": 72}

    def test_from_dict_rejects_non_integer(self):
        """Test non-integer heart rates are rejected."""
        with pytest.raises(ValueError):
            Bracelet.from_dict({"heart_rate": "72"})
        with pytest.raises(ValueError):
            Bracelet.from_dict({"heart_rate": True})
        with pytest.raises(ValueError):
            Bracelet.from_dict({})


class TestDecodeDeviceData:
    """Test cases for decode_device_data."""

    def test_known_type(self):
        """Test bracelet payloads decode to Bracelet."""
        assert decode_device_data("bracelet", {"heart_rate": 80}) == Bracelet(80)

    def test_unknown_type(self):
        """Test unknown device types keep their raw payload."""
        data = decode_device_data("thermostat", {"celsius": 21.5})

        assert isinstance(data, UnknownDevice)
        assert data.device_type == "thermostat"
        assert data.to_dict() == {"celsius": 21.5}

    def test_malformed_known_type(self):
        """Test a bracelet payload without a valid heart rate is kept raw."""
        data = decode_device_data("bracelet", {"heart_rate": "fast"})

        assert isinstance(data, UnknownDevice)
        assert data.to_dict() == {"heart_rate": "fast"}

    def test_non_object(self):
        """Test non-object device_data is wrapped."""
        data = decode_device_data("bracelet", 42)

        assert data.to_dict() == {"value": 42}


class TestTelemetryRecord:
    """Test cases for TelemetryRecord."""

    def test_create_sets_device_type(self):
        """Test device_type follows the device_data variant."""
        record = TelemetryRecord.create("bracelet-123", Bracelet(70), FIXED_TIME)

        assert record.device_type == "bracelet"
        assert record.time == FIXED_TIME

    def test_create_defaults_to_now(self):
        """Test records are stamped with an aware current time."""
        record = TelemetryRecord.create("bracelet-123", Bracelet(70))

        assert record.time.tzinfo is not None

    def test_wire_format(self):
        """Test the exact JSON wire format."""
        record = TelemetryRecord.create("bracelet-123", Bracelet(72), FIXED_TIME)

        assert record.to_json() == (
            b'{"time":"2024-05-01T10:30:15.25+02:00","device_id":"bracelet-123",'
            b'"device_type":"bracelet","device_data":{"heart_rate":72}}'
        )

    def test_json_roundtrip(self):
        """Test a record decodes back to an equal record."""
        record = TelemetryRecord.create("bracelet-123", Bracelet(99), FIXED_TIME)

        assert TelemetryRecord.from_json(record.to_json()) == record

    def test_to_json_encode_failure(self):
        """Test unserializable device data raises EncodeFailure."""
        record = TelemetryRecord.create(
            "sensor-1",
            UnknownDevice("sensor", {"reading": float("nan")}),
            FIXED_TIME,
        )

        with pytest.raises(EncodeFailure):
            record.to_json()

    def test_from_json_missing_field(self):
        """Test missing fields raise ValueError."""
        with pytest.raises(ValueError, match="device_id"):
            TelemetryRecord.from_json(b'{"time":"2024-05-01T10:30:15Z","device_type":"bracelet"}')

    def test_from_json_not_object(self):
        """Test non-object payloads raise ValueError."""
        with pytest.raises(ValueError):
            TelemetryRecord.from_json(b"[1, 2]")

    def test_summary(self):
        """Test the human readable summary line."""
        record = TelemetryRecord.create("bracelet-123", Bracelet(72), FIXED_TIME)

        assert record.summary() == (
            "{Time:2024-05-01T10:30:15.25+02:00 DeviceId:bracelet-123 "
            "DeviceType:bracelet DeviceData:{'heart_rate': 72}}"
        )


class TestStoredTelemetry:
    """Test cases for StoredTelemetry and IdSequence."""

    def test_ids_increase(self):
        """Test ids start at 1 and increase."""
        ids = IdSequence()
        record = TelemetryRecord.create("bracelet-123", Bracelet(72), FIXED_TIME)

        first = StoredTelemetry.from_record(record, ids, FIXED_TIME)
        second = StoredTelemetry.from_record(record, ids, FIXED_TIME)

        assert first.id == 1
        assert second.id == 2

    def test_bookkeeping_and_blob(self):
        """Test timestamps and pre-encoded device data."""
        stamp = datetime(2024, 5, 2, tzinfo=timezone.utc)
        record = TelemetryRecord.create("bracelet-123", Bracelet(72), FIXED_TIME)

        stored = StoredTelemetry.from_record(record, IdSequence(), stamp)

        assert stored.created_at == stamp
        assert stored.updated_at == stamp
        assert stored.device_data == '{"heart_rate":72}'
        assert stored.to_record() == record

    def test_to_dict_embeds_device_data(self):
        """Test device_data is an object in the dictionary form."""
        record = TelemetryRecord.create("bracelet-123", Bracelet(72), FIXED_TIME)
        data = StoredTelemetry.from_record(record, IdSequence(), FIXED_TIME).to_dict()

        assert data["device_data"] == {"heart_rate": 72}
        assert data["id"] == 1


class TestPayloadSynthesizer:
    """Test cases for PayloadSynthesizer."""

    def test_heart_rate_range(self):
        """Test heart rates stay in [60, 100) and cover the range."""
        synth = PayloadSynthesizer(seed=1)
        rates = {synth.heart_rate() for _ in range(5000)}

        assert min(rates) == 60
        assert max(rates) == 99

    def test_seed_is_reproducible(self):
        """Test equal seeds produce equal sequences."""
        a = PayloadSynthesizer(seed=42)
        b = PayloadSynthesizer(seed=42)

        assert [a.heart_rate() for _ in range(20)] == [b.heart_rate() for _ in range(20)]

    def test_bracelet_record_wire_properties(self):
        """Test every generated record decodes with the expected fields."""
        synth = PayloadSynthesizer(seed=7)

        for _ in range(10_000):
            payload = synth.bracelet_record().to_json()
            data = json.loads(payload)

            parse_rfc3339(data["time"])
            assert data["device_id"] == BRACELET_DEVICE_ID
            assert data["device_type"] == "bracelet"
            assert 60 <= data["device_data"]["heart_rate"] < 100

    def test_bracelet_record_uses_clock(self):
        """Test records are stamped by the injected clock."""
        synth = PayloadSynthesizer(seed=1, clock=lambda: FIXED_TIME)

        assert synth.bracelet_record().time == FIXED_TIME

    def test_simple_messages(self):
        """Test the fixed message set."""
        assert SIMPLE_MESSAGES == (
            "Hello, World!",
            "Greetings from Go!",
            "MQTT is awesome!",
            "Random message incoming!",
            "Go is fun!",
        )

    def test_simple_message_uniform(self):
        """Test each message appears within five standard deviations of uniform."""
        synth = PayloadSynthesizer(seed=2024)
        draws = 1000
        counts = Counter(synth.simple_message() for _ in range(draws))

        p = 1 / len(SIMPLE_MESSAGES)
        expected = draws * p
        sigma = math.sqrt(draws * p * (1 - p))

        assert set(counts) == set(SIMPLE_MESSAGES)
        for message in SIMPLE_MESSAGES:
            assert abs(counts[message] - expected) <= 5 * sigma
