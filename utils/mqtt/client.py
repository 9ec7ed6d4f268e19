# -*- coding: utf-8 -*-
"""MQTT Client Module.

Provides a token-based wrapper around paho-mqtt. Every asynchronous
operation returns a Token that resolves when the broker acknowledges it.
"""

import logging
import os
import threading
import time
from typing import Callable, Dict, Optional, Tuple, Union

import paho.mqtt.client as mqtt

from core.exceptions import (
    ConnectFailure,
    PublishFailure,
    SubscribeFailure,
    UnsubscribeFailure,
)
from ..logger import Logger
from .config import MQTTConfig
from .messages import InboundMessage
from .stats import MQTTStatistics
from .token import PublishToken, Token


MessageHandler = Callable[[InboundMessage], None]


def _is_failure(reason_code) -> bool:
    """Check a paho ReasonCode (or bare int) for failure."""
    if hasattr(reason_code, "is_failure"):
        return bool(reason_code.is_failure)
    return int(reason_code) >= 0x80


class MQTTClient:
    """Token-based MQTT client.

    paho-mqtt runs its network loop on a background thread started by
    ``connect()``. All callbacks, including subscription handlers, run on
    that single thread, in delivery order.

    Features:
    - Connect/subscribe/unsubscribe/publish return completion tokens
    - Disconnect with a quiesce period for in-flight publishes
    - Thread-safe statistics tracking
    - Dedicated logging to logs/mqtt.log

    Example:
        >>> from utils.mqtt import MQTTClient, MQTTConfig
        >>> client = MQTTClient(MQTTConfig(broker="tcp://localhost:1883"))
        >>> token = client.connect()
        >>> if token.wait(30) and token.error is None:
        ...     client.publish("iot-messages", 0, False, b"hello").wait()
        ...     client.disconnect(250)
    """

    def __init__(
        self,
        config: Optional[MQTTConfig] = None,
        log_file: Optional[str] = "logs/mqtt.log",
        report: Optional[Callable[[str], None]] = None,
    ):
        """Initialize MQTT client.

        Args:
            config: MQTT configuration. Uses default configuration if None.
            log_file: Path to MQTT log file, None to disable file logging.
            report: Receives unexpected connection loss notices. Defaults to
                the "MQTT"-tagged application logging method.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self._config = config or MQTTConfig()
        self._config.validate()
        self._client_id = self._config.client_id

        self._client: Optional[mqtt.Client] = None
        self._loop_started = False

        # Pending acknowledgements keyed by message id
        self._lock = threading.RLock()
        self._connect_token: Optional[Token] = None
        self._pending_subscribes: Dict[int, Tuple[Token, str]] = {}
        self._pending_unsubscribes: Dict[int, Tuple[Token, str]] = {}
        self._inflight: Dict[int, PublishToken] = {}

        self._stats = MQTTStatistics()
        self._stats_lock = threading.Lock()

        self._report = report
        self._logger = self._setup_logger(log_file)
        self._log_info(
            f"Client initialized - broker: {self._config.broker}, "
            f"client_id: {self._client_id}"
        )

    def _setup_logger(self, log_file: Optional[str]) -> logging.Logger:
        """Create dedicated MQTT logger.

        Args:
            log_file: Path to log file.

        Returns:
            Configured logger instance.
        """
        logger = logging.getLogger(f"mqtt.{self._client_id}")
        logger.setLevel(logging.DEBUG)

        # Remove existing handlers to avoid duplicates
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

        if log_file:
            try:
                log_dir = os.path.dirname(log_file)
                if log_dir:
                    os.makedirs(log_dir, exist_ok=True)
                file_handler = logging.FileHandler(log_file, encoding="utf-8")
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(
                    logging.Formatter(
                        "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                        datefmt="%Y-%m-%d %H:%M:%S",
                    )
                )
                logger.addHandler(file_handler)
            except OSError as e:
                # Fallback to console if file logging fails
                console_handler = logging.StreamHandler()
                console_handler.setLevel(logging.WARNING)
                logger.addHandler(console_handler)
                logger.warning(f"Failed to setup file logging: {e}")
        else:
            logger.addHandler(logging.NullHandler())

        logger.propagate = False
        return logger

    def _log_debug(self, message: str) -> None:
        """Log debug message."""
        self._logger.debug(message)

    def _log_info(self, message: str) -> None:
        """Log info message."""
        self._logger.info(message)

    def _log_warning(self, message: str) -> None:
        """Log warning message."""
        self._logger.warning(message)

    def _log_error(self, message: str) -> None:
        """Log error message."""
        self._logger.error(message)

    @property
    def config(self) -> MQTTConfig:
        """Client configuration."""
        return self._config

    # === Lifecycle Methods ===

    def connect(self) -> Token:
        """Open the connection and start the network loop.

        Returns:
            Token resolved on CONNACK. Its error is a ConnectFailure when the
            broker is unreachable or refuses the connection.
        """
        token = Token("connect")
        with self._lock:
            self._connect_token = token

        self._init_client()
        host, port = self._config.split_broker()

        self._log_info(f"Connecting to {host}:{port}...")
        try:
            self._client.connect(host, port, keepalive=self._config.keepalive)
        except (OSError, ValueError) as e:
            self._log_error(f"Connection failed: {e}")
            token.complete(ConnectFailure(self._config.broker, str(e)))
            return token

        # Start network loop (handles reconnection automatically)
        self._client.loop_start()
        self._loop_started = True
        return token

    def disconnect(self, quiesce_ms: Optional[int] = None) -> None:
        """Disconnect from the broker and stop the network loop.

        Waits up to ``quiesce_ms`` for in-flight publishes to complete before
        sending DISCONNECT. Safe to call on a client that never connected.

        Args:
            quiesce_ms: Grace period in milliseconds. Uses the configured
                disconnect_quiesce_ms if None.
        """
        if quiesce_ms is None:
            quiesce_ms = self._config.disconnect_quiesce_ms

        deadline = time.monotonic() + quiesce_ms / 1000.0
        while time.monotonic() < deadline:
            with self._lock:
                # on_publish may run before paho marks the message published
                self._inflight = {
                    mid: token for mid, token in self._inflight.items()
                    if not token.done()
                }
                if not self._inflight:
                    break
            time.sleep(0.01)

        with self._lock:
            if self._inflight:
                self._log_warning(
                    f"Disconnecting with {len(self._inflight)} publish(es) in flight"
                )
            self._inflight.clear()

        if self._client is None:
            return

        try:
            self._client.disconnect()
        except Exception as e:
            self._log_error(f"Error during disconnect: {e}")

        if self._loop_started:
            self._client.loop_stop()
            self._loop_started = False

        self._fail_pending("client disconnected")
        self._log_info("Client disconnected")

    # === Operations ===

    def publish(
        self,
        topic: str,
        qos: int,
        retain: bool,
        payload: Union[bytes, str],
    ) -> Token:
        """Publish a message.

        Args:
            topic: Destination topic.
            qos: MQTT QoS level (0, 1, or 2).
            retain: Whether the broker should retain the message.
            payload: Message payload.

        Returns:
            Token resolved when the publish completes. Its error is a
            PublishFailure if the client could not accept the message.
        """
        if self._client is None:
            token = Token("publish")
            token.complete(PublishFailure(topic, "client not connected"))
            self._count_failed()
            return token

        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        # Not under self._lock: paho holds its own mutexes while calling
        # on_publish, which takes self._lock.
        try:
            info = self._client.publish(topic, payload, qos=qos, retain=retain)
            token = PublishToken(info, topic)
            if not token.done():
                with self._lock:
                    self._inflight[info.mid] = token
        except ValueError as e:
            token = Token("publish")
            token.complete(PublishFailure(topic, str(e)))

        if token.done() and token.error is not None:
            self._count_failed()
            self._log_error(f"Publish failed: {token.error}")
        else:
            with self._stats_lock:
                self._stats.bytes_sent += len(payload)
                self._stats.last_send_time = time.time()
            self._log_debug(f"Message queued: {topic}")

        return token

    def subscribe(
        self,
        topic: str,
        qos: int,
        handler: Optional[MessageHandler] = None,
    ) -> Token:
        """Subscribe to a topic.

        Args:
            topic: Topic filter.
            qos: Requested QoS level.
            handler: Called with an InboundMessage for each delivery on the
                network loop thread.

        Returns:
            Token resolved on SUBACK. Its error is a SubscribeFailure when the
            broker rejects the subscription.
        """
        token = Token("subscribe")
        if self._client is None:
            token.complete(SubscribeFailure(topic, "client not connected"))
            return token

        if handler is not None:
            self._client.message_callback_add(topic, self._make_dispatcher(handler))

        with self._lock:
            rc, mid = self._client.subscribe(topic, qos)
            if rc != mqtt.MQTT_ERR_SUCCESS:
                token.complete(SubscribeFailure(topic, mqtt.error_string(rc)))
            else:
                self._pending_subscribes[mid] = (token, topic)

        return token

    def unsubscribe(self, topic: str) -> Token:
        """Unsubscribe from a topic.

        Args:
            topic: Topic filter previously subscribed.

        Returns:
            Token resolved on UNSUBACK.
        """
        token = Token("unsubscribe")
        if self._client is None:
            token.complete(UnsubscribeFailure(topic, "client not connected"))
            return token

        with self._lock:
            rc, mid = self._client.unsubscribe(topic)
            if rc != mqtt.MQTT_ERR_SUCCESS:
                token.complete(UnsubscribeFailure(topic, mqtt.error_string(rc)))
            else:
                self._pending_unsubscribes[mid] = (token, topic)

        self._client.message_callback_remove(topic)
        return token

    # === Status & Statistics ===

    def is_connected(self) -> bool:
        """Check if client is connected to broker."""
        return self._client is not None and self._client.is_connected()

    def get_statistics(self) -> MQTTStatistics:
        """Get copy of current statistics.

        Returns:
            Copy of current MQTTStatistics.
        """
        with self._stats_lock:
            return self._stats.copy()

    # === Private Methods ===

    def _init_client(self) -> None:
        """Initialize paho-mqtt client instance."""
        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv311,
            clean_session=True,
        )
        self._client.enable_logger(self._logger)

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_subscribe = self._on_subscribe
        self._client.on_unsubscribe = self._on_unsubscribe
        self._client.on_publish = self._on_publish

    def _make_dispatcher(self, handler: MessageHandler):
        """Adapt a MessageHandler to paho's per-topic callback signature."""

        def dispatch(client, userdata, message) -> None:  # pylint: disable=unused-argument
            inbound = InboundMessage.from_paho(message)
            with self._stats_lock:
                self._stats.messages_received += 1
                self._stats.bytes_received += len(inbound.payload)
                self._stats.last_receive_time = inbound.received_at
            try:
                handler(inbound)
            except Exception as e:
                self._log_error(f"Message handler error on {inbound.topic}: {e}")

        return dispatch

    def _count_failed(self) -> None:
        with self._stats_lock:
            self._stats.messages_failed += 1

    def _fail_pending(self, reason: str) -> None:
        """Resolve every outstanding subscribe/unsubscribe token with an error."""
        with self._lock:
            for token, topic in self._pending_subscribes.values():
                token.complete(SubscribeFailure(topic, reason))
            for token, topic in self._pending_unsubscribes.values():
                token.complete(UnsubscribeFailure(topic, reason))
            self._pending_subscribes.clear()
            self._pending_unsubscribes.clear()

    # === MQTT Callbacks ===

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """Handle CONNACK."""
        with self._lock:
            token = self._connect_token

        if _is_failure(reason_code):
            self._log_error(f"Connection refused: {reason_code}")
            if token is not None:
                token.complete(ConnectFailure(self._config.broker, str(reason_code)))
            return

        self._log_info(f"Connected to {self._config.broker}")
        with self._stats_lock:
            self._stats.connection_count += 1
        if token is not None:
            token.complete()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        """Handle disconnection, expected or not."""
        with self._stats_lock:
            self._stats.disconnect_count += 1

        if _is_failure(reason_code):
            self._log_warning(
                f"Connection lost ({reason_code}), auto-reconnect enabled"
            )
            if self._report is None:
                self._report = Logger.get_logging_method("MQTT", logging.WARNING)
            self._report(f"Connection lost: {reason_code}")
        else:
            self._log_info("Disconnected normally")

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None) -> None:
        """Handle SUBACK."""
        with self._lock:
            pending = self._pending_subscribes.pop(mid, None)
        if pending is None:
            return

        token, topic = pending
        failed = [rc for rc in reason_code_list if _is_failure(rc)]
        if failed:
            self._log_error(f"Subscription to {topic} rejected: {failed[0]}")
            token.complete(SubscribeFailure(topic, str(failed[0])))
        else:
            self._log_info(f"Subscribed to {topic}")
            token.complete()

    def _on_unsubscribe(self, client, userdata, mid, reason_code_list, properties=None) -> None:
        """Handle UNSUBACK."""
        with self._lock:
            pending = self._pending_unsubscribes.pop(mid, None)
        if pending is None:
            return

        token, topic = pending
        failed = [rc for rc in reason_code_list if _is_failure(rc)]
        if failed:
            token.complete(UnsubscribeFailure(topic, str(failed[0])))
        else:
            self._log_info(f"Unsubscribed from {topic}")
            token.complete()

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None) -> None:
        """Handle publish completion (socket write for QoS 0, PUBACK otherwise)."""
        with self._lock:
            self._inflight.pop(mid, None)
        with self._stats_lock:
            self._stats.messages_sent += 1
        self._log_debug(f"Message sent (mid={mid})")
