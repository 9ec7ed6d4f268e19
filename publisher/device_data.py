"""Telemetry publisher.

Publishes one synthetic bracelet reading per tick as JSON.
"""

from typing import Optional, Tuple

from telemetry import PayloadSynthesizer
from .base import PublisherBase


class DeviceDataPublisher(PublisherBase):
    """Publisher of JSON-encoded bracelet telemetry."""

    tag = "DEVICE-DATA"
    report_prefix = "Published"

    def __init__(self, client, shutdown, synthesizer: Optional[PayloadSynthesizer] = None, log=None):
        super().__init__(client, shutdown, log=log)
        self._synthesizer = synthesizer or PayloadSynthesizer()

    def build_payload(self) -> Tuple[bytes, str]:
        record = self._synthesizer.bracelet_record()
        return record.to_json(), record.summary()
