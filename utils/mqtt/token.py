# -*- coding: utf-8 -*-
"""MQTT Token Module.

Completion handles returned by the asynchronous client operations.
"""

import threading
from typing import Optional

import paho.mqtt.client as mqtt

from core.exceptions import PublishFailure


class Token:
    """Completion handle for an asynchronous broker operation.

    The token resolves exactly once, either successfully or with a terminal
    error. Later completions are ignored.

    Example:
        >>> token = client.subscribe("iot-messages", 1, handler)
        >>> if token.wait(10.0) and token.error is None:
        ...     print("subscribed")
    """

    def __init__(self, operation: str = ""):
        """Initialize an unresolved token.

        Args:
            operation: Operation name, used in reprs and log messages.
        """
        self.operation = operation
        self._event = threading.Event()
        self._error: Optional[Exception] = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the operation resolves.

        Args:
            timeout: Maximum time to wait in seconds (None = forever).

        Returns:
            True if the operation resolved, False on timeout.
        """
        return self._event.wait(timeout)

    def done(self) -> bool:
        """Check whether the operation has resolved."""
        return self._event.is_set()

    @property
    def error(self) -> Optional[Exception]:
        """Terminal error of the operation, None on success or while pending."""
        return self._error

    def complete(self, error: Optional[Exception] = None) -> None:
        """Resolve the token.

        Args:
            error: Terminal error, None for success.
        """
        if self._event.is_set():
            return
        self._error = error
        self._event.set()

    def __repr__(self) -> str:
        state = "pending"
        if self.done():
            state = "failed" if self._error else "ok"
        return f"Token({self.operation}, {state})"


class PublishToken(Token):
    """Token backed by paho's MQTTMessageInfo.

    For QoS 0 the publish resolves once the packet is written to the socket;
    for QoS 1 and 2 once the broker acknowledges it.
    """

    def __init__(self, info: mqtt.MQTTMessageInfo, topic: str = ""):
        super().__init__("publish")
        self._info = info
        self.topic = topic

    @property
    def mid(self) -> int:
        """Message identifier assigned by the client."""
        return self._info.mid

    def wait(self, timeout: Optional[float] = None) -> bool:
        if self.done():
            return True
        try:
            self._info.wait_for_publish(timeout)
        except (RuntimeError, ValueError) as e:
            # Raised for a failed rc or a full outgoing queue
            self.complete(PublishFailure(self.topic, str(e)))
            return True
        return self.done()

    def done(self) -> bool:
        if not super().done():
            rc = self._info.rc
            if rc not in (mqtt.MQTT_ERR_SUCCESS, mqtt.MQTT_ERR_AGAIN):
                self.complete(PublishFailure(self.topic, mqtt.error_string(rc)))
            elif rc == mqtt.MQTT_ERR_SUCCESS and self._info.is_published():
                self.complete()
        return super().done()
