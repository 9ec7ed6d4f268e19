"""Ingress adapter between the MQTT client and the pipeline.

The broker client invokes the handler once per delivery on its network
loop thread. The handler pushes the message onto the input channel and
blocks while the channel is full, which stops the client from reading
further packets until the processor catches up.

After cancellation, deliveries that race with unsubscribe are dropped
without blocking.
"""

import threading
from typing import Callable, Optional

from utils.mqtt import InboundMessage
from .cancel import CancelToken
from .channel import Channel, ChannelClosed


class IngressHandler:
    """Callable message handler feeding a Channel.

    Example:
        >>> handler = IngressHandler(channel, cancel)
        >>> client.subscribe("iot-messages", 1, handler)
    """

    def __init__(
        self,
        channel: Channel,
        cancel: CancelToken,
        log: Optional[Callable[[str], None]] = None,
    ):
        """Initialize handler.

        Args:
            channel: Input channel of the pipeline.
            cancel: Pipeline cancellation token.
            log: Optional logging method for dropped messages.
        """
        self._channel = channel
        self._cancel = cancel
        self._log = log
        self._lock = threading.Lock()
        self._accepted = 0
        self._dropped = 0

    @property
    def accepted(self) -> int:
        """Messages pushed onto the channel."""
        with self._lock:
            return self._accepted

    @property
    def dropped(self) -> int:
        """Messages discarded after cancellation or channel closure."""
        with self._lock:
            return self._dropped

    def __call__(self, message: InboundMessage) -> None:
        if self._cancel.cancelled:
            self._drop(message, "pipeline cancelled")
            return

        try:
            delivered = self._channel.send(message, self._cancel)
        except ChannelClosed:
            self._drop(message, "channel closed")
            return

        if not delivered:
            self._drop(message, "pipeline cancelled")
            return

        with self._lock:
            self._accepted += 1

    def _drop(self, message: InboundMessage, reason: str) -> None:
        with self._lock:
            self._dropped += 1
        if self._log:
            self._log(f"Dropped message on {message.topic} ({reason})")
