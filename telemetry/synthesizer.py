"""Synthetic payload generation for the publishers."""

import random
from datetime import datetime
from typing import Callable, Optional

from utils.time_utils import now
from .models import Bracelet, TelemetryRecord


BRACELET_DEVICE_ID = "bracelet-123"

HEART_RATE_MIN = 60
HEART_RATE_SPAN = 40  # heart rate in [60, 100)

SIMPLE_MESSAGES = (
    "Hello, World!",
    "Greetings from Go!",
    "MQTT is awesome!",
    "Random message incoming!",
    "Go is fun!",
)


class PayloadSynthesizer:
    """Pseudorandom payload source.

    System-seeded by default; pass a seed for reproducible sequences.
    Not suitable for anything needing cryptographic strength.

    Example:
        >>> synth = PayloadSynthesizer(seed=42)
        >>> 60 <= synth.heart_rate() < 100
        True
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        clock: Callable[[], datetime] = now,
    ):
        """Initialize synthesizer.

        Args:
            seed: Random seed, None for system seeding.
            clock: Source of record timestamps.
        """
        self._random = random.Random(seed)
        self._clock = clock

    def heart_rate(self) -> int:
        """Heart rate in [60, 100)."""
        return HEART_RATE_MIN + self._random.randrange(HEART_RATE_SPAN)

    def simple_message(self) -> str:
        """One of SIMPLE_MESSAGES, chosen uniformly."""
        return SIMPLE_MESSAGES[self._random.randrange(len(SIMPLE_MESSAGES))]

    def bracelet_record(self) -> TelemetryRecord:
        """Bracelet telemetry record stamped with the current time."""
        return TelemetryRecord.create(
            device_id=BRACELET_DEVICE_ID,
            device_data=Bracelet(heart_rate=self.heart_rate()),
            timestamp=self._clock(),
        )
