"""Tests for the Subscriber supervisor.

A fake broker client stands in for MQTTClient so the lifecycle, the
shutdown ordering and the failure paths can be checked without a broker.
"""

import pytest
import sys
import threading
import time

from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.constants import ErrorCode
from core.exceptions import ConnectFailure, SubscribeFailure
from pipeline import PipelineState, Subscriber
from utils import ShutdownSignal
from utils.mqtt import InboundMessage, MQTTConfig, MQTTStatistics, Token


class FakeBrokerClient:
    """In-memory stand-in for MQTTClient."""

    def __init__(self, config=None, connect_error=None, subscribe_error=None, ack=True):
        self.config = config or MQTTConfig(client_id="go-mqtt-subscriber")
        self.connect_error = connect_error
        self.subscribe_error = subscribe_error
        self.ack = ack
        self.calls = []
        self.handler = None
        self.cancelled_at_unsubscribe = None
        self.subscriber = None
        self.stats = MQTTStatistics()

    def _token(self, operation, error=None):
        token = Token(operation)
        if self.ack:
            token.complete(error)
        return token

    def connect(self):
        self.calls.append("connect")
        return self._token("connect", self.connect_error)

    def subscribe(self, topic, qos, handler=None):
        self.calls.append(("subscribe", topic, qos))
        self.handler = handler
        return self._token("subscribe", self.subscribe_error)

    def unsubscribe(self, topic):
        self.calls.append(("unsubscribe", topic))
        if self.subscriber is not None:
            self.cancelled_at_unsubscribe = self.subscriber._cancel.cancelled
        return self._token("unsubscribe")

    def disconnect(self, quiesce_ms=None):
        self.calls.append(("disconnect", quiesce_ms))

    def get_statistics(self):
        return self.stats.copy()

    def deliver(self, payload: bytes, topic: str = "iot-messages"):
        self.stats.messages_received += 1
        self.handler(InboundMessage(topic=topic, payload=payload, qos=1))


def wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def logged():
    return []


@pytest.fixture
def emitted():
    return []


def make_subscriber(client, logged, emitted):
    subscriber = Subscriber(client, ShutdownSignal(), emit=emitted.append, log=logged.append)
    client.subscriber = subscriber
    return subscriber


class TestSubscriberLifecycle:
    """Test cases for the graceful lifecycle."""

    def test_start_connects_then_subscribes(self, logged, emitted):
        """Test startup order and lifecycle lines."""
        client = FakeBrokerClient()
        subscriber = make_subscriber(client, logged, emitted)

        subscriber.start()

        assert client.calls == ["connect", ("subscribe", "iot-messages", 1)]
        assert subscriber.state == PipelineState.SUBSCRIBED
        assert logged[:2] == ["Connected to MQTT broker", "Subscribed to topic: iot-messages"]
        assert subscriber.processor.is_alive()

        subscriber.stop()

    def test_messages_are_printed_in_order(self, logged, emitted):
        """Test each delivery produces exactly one trace line."""
        client = FakeBrokerClient()
        subscriber = make_subscriber(client, logged, emitted)
        subscriber.start()

        for i in range(10):
            client.deliver(f"payload-{i}".encode("utf-8"))
        assert wait_until(lambda: subscriber.drained == 10)

        subscriber.stop()

        assert emitted == [
            f"Received message: payload-{i} from topic: iot-messages" for i in range(10)
        ]
        assert subscriber.processor.processed == 10

    def test_shutdown_ordering(self, logged, emitted):
        """Test cancel precedes unsubscribe, which precedes disconnect and join."""
        client = FakeBrokerClient()
        subscriber = make_subscriber(client, logged, emitted)
        subscriber.start()

        subscriber.stop()

        assert client.calls[2:] == [("unsubscribe", "iot-messages"), ("disconnect", 250)]
        assert client.cancelled_at_unsubscribe is True
        assert not subscriber.processor.is_alive()
        assert subscriber.state == PipelineState.CLOSED
        assert subscriber.state_machine.history[-2:] == [PipelineState.DRAINING, PipelineState.CLOSED]

        unsubscribing = logged.index("Unsubscribing and disconnecting...")
        assert logged[-1] == "Goroutine terminated, exiting..."
        assert unsubscribing < len(logged) - 1

    def test_stop_is_prompt(self, logged, emitted):
        """Test shutdown completes well within the join budget on an idle pipeline."""
        client = FakeBrokerClient()
        subscriber = make_subscriber(client, logged, emitted)
        subscriber.start()

        start = time.monotonic()
        subscriber.stop()

        assert time.monotonic() - start < 1.0

    def test_stop_twice(self, logged, emitted):
        """Test a second stop is a no-op."""
        client = FakeBrokerClient()
        subscriber = make_subscriber(client, logged, emitted)
        subscriber.start()
        subscriber.stop()
        calls = list(client.calls)

        subscriber.stop()

        assert client.calls == calls

    def test_late_delivery_after_stop_is_dropped(self, logged, emitted):
        """Test deliveries racing with shutdown are dropped, not printed."""
        client = FakeBrokerClient()
        subscriber = make_subscriber(client, logged, emitted)
        subscriber.start()
        subscriber.stop()

        client.deliver(b"late")

        assert subscriber.ingress.dropped == 1
        assert emitted == []

    def test_buffered_messages_survive_stop(self, logged):
        """Test messages accepted before stop are all printed despite a slow consumer."""
        client = FakeBrokerClient()
        emitted = []

        def slow_emit(line):
            time.sleep(0.1)
            emitted.append(line)

        subscriber = Subscriber(client, ShutdownSignal(), emit=slow_emit, log=logged.append)
        client.subscriber = subscriber
        subscriber.start()

        for i in range(5):
            client.deliver(f"payload-{i}".encode("utf-8"))
        subscriber.stop()

        assert subscriber.ingress.accepted == 5
        assert emitted == [
            f"Received message: payload-{i} from topic: iot-messages" for i in range(5)
        ]
        assert subscriber.processor.processed == 5
        assert logged[-2].startswith("Received 5, processed 5 message(s), dropped 0,")
        assert logged[-1] == "Goroutine terminated, exiting..."

    def test_unsubscribe_timeout_does_not_block_shutdown(self, logged, emitted):
        """Test an unacknowledged unsubscribe still lets shutdown finish."""
        config = MQTTConfig(client_id="go-mqtt-subscriber", operation_timeout=0.05)
        client = FakeBrokerClient(config)
        subscriber = make_subscriber(client, logged, emitted)
        subscriber.start()
        client.ack = False

        subscriber.stop()

        assert subscriber.state == PipelineState.CLOSED
        assert "Unsubscribe from iot-messages timed out" in logged

    def test_run_until_shutdown(self, logged, emitted):
        """Test run() processes messages and returns 0 on shutdown."""
        client = FakeBrokerClient()
        shutdown = ShutdownSignal()
        subscriber = Subscriber(client, shutdown, emit=emitted.append, log=logged.append)
        result = {}

        worker = threading.Thread(target=lambda: result.setdefault("code", subscriber.run()))
        worker.start()
        assert wait_until(lambda: subscriber.state == PipelineState.SUBSCRIBED)

        client.deliver(b"Hello, World!")
        assert wait_until(lambda: subscriber.processor.processed == 1)

        shutdown.trigger()
        worker.join(3.0)

        assert not worker.is_alive()
        assert result["code"] == 0
        assert emitted == ["Received message: Hello, World! from topic: iot-messages"]


class TestSubscriberFailures:
    """Test cases for fatal startup errors."""

    def test_connect_failure(self, logged, emitted):
        """Test a refused connection exits with CONNECT_FAILED."""
        client = FakeBrokerClient(connect_error=ConnectFailure("tcp://localhost:1883", "refused"))
        subscriber = make_subscriber(client, logged, emitted)

        code = subscriber.run()

        assert code == ErrorCode.CONNECT_FAILED
        assert subscriber.state == PipelineState.FAILED
        assert logged[0].startswith("Fatal: Failed to connect to MQTT broker")
        assert ("disconnect", 0) in client.calls
        assert not any(isinstance(c, tuple) and c[0] == "subscribe" for c in client.calls)

    def test_connect_timeout(self, logged, emitted):
        """Test an unanswered connect times out as CONNECT_FAILED."""
        config = MQTTConfig(client_id="go-mqtt-subscriber", connect_timeout=0.05)
        client = FakeBrokerClient(config, ack=False)
        subscriber = make_subscriber(client, logged, emitted)

        assert subscriber.run() == ErrorCode.CONNECT_FAILED
        assert "connect timed out" in subscriber.state_machine.error_message

    def test_subscribe_failure(self, logged, emitted):
        """Test a rejected subscription exits with SUBSCRIBE_FAILED and stops workers."""
        client = FakeBrokerClient(subscribe_error=SubscribeFailure("iot-messages", "not authorized"))
        subscriber = make_subscriber(client, logged, emitted)

        code = subscriber.run()

        assert code == ErrorCode.SUBSCRIBE_FAILED
        assert subscriber.state == PipelineState.FAILED
        assert subscriber.state_machine.history == [
            PipelineState.INIT,
            PipelineState.CONNECTED,
            PipelineState.FAILED,
        ]
        assert not subscriber.processor.is_alive()
