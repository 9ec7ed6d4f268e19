"""Publisher base class.

This module provides the PublisherBase abstract class that implements the
loop shared by all publishers:

    connect -> [build payload -> publish -> wait -> report -> sleep]* -> disconnect

Subclasses only decide what to publish.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

from core.constants import ErrorCode
from core.exceptions import BrokerException, ConnectFailure, EncodeFailure, PublishFailure
from utils import Logger, ShutdownSignal
from utils.mqtt import MQTTClient, MQTTConfig


class PublisherBase(ABC):
    """Base class for tick-driven publishers.

    One payload is published per tick and its completion is awaited before
    the next tick, so at most one publish is in flight. The tick interval is
    not compensated for drift.

    Attributes:
        published: Ticks whose publish completed.
        skipped: Ticks skipped because the payload could not be built.
        failed: Ticks whose publish failed or timed out.
    """

    tag = "PUBLISHER"
    report_prefix = "Published"

    def __init__(
        self,
        client: MQTTClient,
        shutdown: ShutdownSignal,
        log: Optional[Callable[[str], None]] = None,
    ):
        """Initialize publisher.

        Args:
            client: Broker client (not yet connected).
            shutdown: Latch that ends the loop.
            log: Logging method, defaults to a tagged Logger method.
        """
        self._client = client
        self._config: MQTTConfig = client.config
        self._shutdown = shutdown
        self.log = log or Logger.get_logging_method(self.tag)

        self.published = 0
        self.skipped = 0
        self.failed = 0

    @abstractmethod
    def build_payload(self) -> Tuple[bytes, str]:
        """Produce the next payload.

        Returns:
            (payload bytes, human readable summary) tuple.

        Raises:
            EncodeFailure: If the payload cannot be encoded.
        """

    # ==================== Lifecycle ====================

    def run(self) -> int:
        """Publish until the shutdown latch is set.

        Returns:
            Process exit code.
        """
        try:
            self.connect()
        except ConnectFailure as e:
            self.log(f"Fatal: {e.message}")
            self._client.disconnect(0)
            return e.exit_code

        self.log("Connected to MQTT broker")

        try:
            while not self._shutdown.is_set():
                self.tick()
                if self._shutdown.wait(self._config.publish_interval):
                    break
        finally:
            stats = self._client.get_statistics()
            self.log(
                f"Published {self.published}, skipped {self.skipped}, failed {self.failed}, "
                f"delivery rate {stats.success_rate:.1%}"
            )
            self.log("Stopping publisher...")
            self._client.disconnect(self._config.disconnect_quiesce_ms)
            self.log("Disconnected")

        return int(ErrorCode.SUCCESS)

    def connect(self) -> None:
        """Connect and wait for the broker's acknowledgement.

        Raises:
            ConnectFailure: If the connection fails or times out.
        """
        token = self._client.connect()
        if not token.wait(self._config.connect_timeout):
            raise ConnectFailure(self._config.broker, "connect timed out")
        if token.error is not None:
            if isinstance(token.error, ConnectFailure):
                raise token.error
            raise ConnectFailure(self._config.broker, str(token.error))

    def tick(self) -> bool:
        """Build and publish one payload.

        Encode and publish failures are logged and isolated to this tick.

        Returns:
            True if the payload was published.
        """
        try:
            payload, summary = self.build_payload()
        except EncodeFailure as e:
            self.skipped += 1
            self.log(f"JSON error: {e.message}")
            return False

        topic = self._config.topic
        token = self._client.publish(
            topic,
            self._config.publish_qos,
            self._config.retain,
            payload,
        )

        error: Optional[BrokerException] = None
        if not token.wait(self._config.operation_timeout):
            error = PublishFailure(topic, "publish timed out")
        elif isinstance(token.error, BrokerException):
            error = token.error
        elif token.error is not None:
            error = PublishFailure(topic, str(token.error))

        if error is not None:
            self.failed += 1
            self.log(f"Publish error: {error.message}")
            return False

        self.published += 1
        self.log(f"{self.report_prefix}: {summary}")
        return True
