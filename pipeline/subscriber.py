"""Subscriber supervisor.

Coordinates the subscriber lifecycle:

    connect -> start workers -> subscribe -> wait for signal
            -> cancel -> unsubscribe -> disconnect -> join workers

Pipeline layout::

    client delivery thread          processor thread          drain thread
    IngressHandler --> [in] --> Processor --> [out] --> drain loop
"""

import threading
from typing import Callable, Optional

from core.constants import ErrorCode
from core.exceptions import BrokerException, ConnectFailure, SubscribeFailure
from utils import Logger, ShutdownSignal, Timer
from utils.mqtt import MQTTClient, MQTTConfig
from .cancel import CancelToken
from .channel import Channel
from .ingress import IngressHandler
from .processor import Processor
from .state import PipelineState, PipelineStateMachine


WORKER_JOIN_TIMEOUT = 5.0  # seconds


class Subscriber:
    """Supervisor for the subscriber pipeline.

    Example:
        >>> config = MQTTConfig(client_id="go-mqtt-subscriber")
        >>> with ShutdownSignal() as shutdown:
        ...     exit_code = Subscriber(MQTTClient(config), shutdown).run()
    """

    def __init__(
        self,
        client: MQTTClient,
        shutdown: ShutdownSignal,
        emit: Optional[Callable[[str], None]] = None,
        log: Optional[Callable[[str], None]] = None,
    ):
        """Initialize supervisor.

        Args:
            client: Broker client (not yet connected).
            shutdown: Latch that starts the drain sequence.
            emit: Receives per-message trace lines (defaults to the log).
            log: Logging method for lifecycle lines.
        """
        self._client = client
        self._config: MQTTConfig = client.config
        self._shutdown = shutdown
        self.log = log or Logger.get_logging_method("SUBSCRIBER")

        self._cancel = CancelToken()
        self._input: Channel = Channel(self._config.queue_max_size, name="in")
        self._output: Channel = Channel(self._config.queue_max_size, name="out")
        self._ingress = IngressHandler(self._input, self._cancel, log=self.log)
        self._processor = Processor(
            self._input,
            self._output,
            self._cancel,
            emit=emit or self.log,
        )
        self._drain_thread: Optional[threading.Thread] = None
        self._drained = 0

        self._state = PipelineStateMachine()

    # ==================== Properties ====================

    @property
    def state(self) -> PipelineState:
        return self._state.state

    @property
    def state_machine(self) -> PipelineStateMachine:
        return self._state

    @property
    def ingress(self) -> IngressHandler:
        return self._ingress

    @property
    def processor(self) -> Processor:
        return self._processor

    @property
    def drained(self) -> int:
        """Messages read from the output channel."""
        return self._drained

    # ==================== Lifecycle ====================

    def run(self) -> int:
        """Run until the shutdown latch is set.

        Returns:
            Process exit code: 0 after a graceful shutdown, the error code of
            the fatal error otherwise.
        """
        try:
            self.start()
        except BrokerException as e:
            self.log(f"Fatal: {e.message}")
            self.abort(e.message)
            return e.exit_code

        self._shutdown.wait()
        self.stop()
        return int(ErrorCode.SUCCESS)

    def start(self) -> None:
        """Connect, start workers and subscribe.

        Raises:
            ConnectFailure: If the connection fails or times out.
            SubscribeFailure: If the subscription fails or times out.
        """
        token = self._client.connect()
        if not token.wait(self._config.connect_timeout):
            raise ConnectFailure(self._config.broker, "connect timed out")
        if token.error is not None:
            if isinstance(token.error, BrokerException):
                raise token.error
            raise ConnectFailure(self._config.broker, str(token.error))

        self._state.transition(PipelineState.CONNECTED)
        self.log("Connected to MQTT broker")

        self._start_workers()

        topic = self._config.topic
        token = self._client.subscribe(topic, self._config.subscribe_qos, self._ingress)
        if not token.wait(self._config.operation_timeout):
            raise SubscribeFailure(topic, "subscribe timed out")
        if token.error is not None:
            if isinstance(token.error, BrokerException):
                raise token.error
            raise SubscribeFailure(topic, str(token.error))

        self._state.transition(PipelineState.SUBSCRIBED)
        self.log(f"Subscribed to topic: {topic}")

    def stop(self) -> None:
        """Quiesce the pipeline: cancel, unsubscribe, disconnect, join."""
        if not self._state.transition(PipelineState.DRAINING):
            return

        with Timer() as timer:
            # Cancel first so an ingress push blocked on a full channel
            # returns and the client can process the UNSUBACK.
            self._cancel.cancel()

            self.log("Unsubscribing and disconnecting...")
            token = self._client.unsubscribe(self._config.topic)
            if not token.wait(self._config.operation_timeout):
                self.log(f"Unsubscribe from {self._config.topic} timed out")
            elif token.error is not None:
                self.log(f"Unsubscribe failed: {token.error}")

            self._client.disconnect(self._config.disconnect_quiesce_ms)

            self._join_workers()

        self._state.transition(PipelineState.CLOSED)
        stats = self._client.get_statistics()
        self.log(
            f"Received {stats.messages_received}, processed {self._processor.processed} message(s), "
            f"dropped {self._ingress.dropped}, shutdown took {timer.elapsed:.3f}s"
        )
        self.log("Goroutine terminated, exiting...")

    def abort(self, reason: str = "") -> None:
        """Release everything after a fatal startup error."""
        self._cancel.cancel()
        try:
            self._client.disconnect(0)
        except Exception as e:
            self.log(f"Error during disconnect: {e}")
        self._join_workers()
        self._state.transition(PipelineState.FAILED, reason)

    # ==================== Workers ====================

    def _start_workers(self) -> None:
        self._processor.start()
        self._drain_thread = threading.Thread(
            target=self._drain_loop,
            daemon=True,
            name="PipelineDrain",
        )
        self._drain_thread.start()

    def _drain_loop(self) -> None:
        for _ in self._output:
            self._drained += 1

    def _join_workers(self) -> None:
        # No deliveries arrive after disconnect; closing the input lets a
        # processor that missed the cancellation finish.
        self._input.close()

        if not self._processor.join(WORKER_JOIN_TIMEOUT):
            self.log("Processor did not stop gracefully")

        if self._drain_thread is not None:
            self._drain_thread.join(WORKER_JOIN_TIMEOUT)
            if self._drain_thread.is_alive():
                self.log("Drain worker did not stop gracefully")
