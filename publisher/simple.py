"""Simple publisher.

Publishes one of a fixed set of greeting strings per tick.
"""

from typing import Optional, Tuple

from telemetry import PayloadSynthesizer
from .base import PublisherBase


class SimplePublisher(PublisherBase):
    """Publisher of random fixed strings."""

    tag = "SIMPLE"
    report_prefix = "Published message"

    def __init__(self, client, shutdown, synthesizer: Optional[PayloadSynthesizer] = None, log=None):
        super().__init__(client, shutdown, log=log)
        self._synthesizer = synthesizer or PayloadSynthesizer()

    def build_payload(self) -> Tuple[bytes, str]:
        message = self._synthesizer.simple_message()
        return message.encode("utf-8"), message
