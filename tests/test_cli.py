"""Tests for the command line helpers, the Logger and the entry scripts."""

import logging
import pytest
import sys

from pathlib import Path
from unittest.mock import patch

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import run_device_data
import run_simple_example
import run_subscriber
from core.constants import ErrorCode
from utils.cli import build_parser, config_from_args, mqtt_log_file
from utils.logger import Logger, get_logger


@pytest.fixture(autouse=True)
def reset_logger():
    Logger.reset()
    yield
    Logger.reset()


@pytest.fixture
def clean_env(monkeypatch):
    for var in ("MQTT_BROKER", "MQTT_CLIENT_ID", "MQTT_TOPIC"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestBuildParser:
    """Test cases for build_parser."""

    def test_publisher_flags(self):
        """Test publisher parsers accept --interval and --seed."""
        args = build_parser("test", "go-mqtt-client").parse_args(["--interval", "0.5", "--seed", "3"])

        assert args.interval == 0.5
        assert args.seed == 3
        assert args.log_dir == "logs"

    def test_subscriber_has_no_publisher_flags(self):
        """Test subscriber parsers reject publisher-only flags."""
        parser = build_parser("test", "go-mqtt-subscriber", publisher=False)

        with pytest.raises(SystemExit):
            parser.parse_args(["--interval", "1"])


class TestConfigFromArgs:
    """Test cases for config_from_args."""

    def test_defaults(self, clean_env):
        """Test the program's client id is used when none is configured."""
        args = build_parser("test", "go-mqtt-subscriber", publisher=False).parse_args([])

        config = config_from_args(args, "go-mqtt-subscriber")

        assert config.client_id == "go-mqtt-subscriber"
        assert config.broker == "tcp://localhost:1883"
        assert config.topic == "iot-messages"

    def test_environment(self, clean_env):
        """Test MQTT_* variables apply when flags are absent."""
        clean_env.setenv("MQTT_BROKER", "tcp://env-host:1999")
        clean_env.setenv("MQTT_CLIENT_ID", "env-client")
        args = build_parser("test", "go-mqtt-client").parse_args([])

        config = config_from_args(args, "go-mqtt-client")

        assert config.port == 1999
        assert config.client_id == "env-client"

    def test_flags_win(self, clean_env):
        """Test flags take precedence over the environment."""
        clean_env.setenv("MQTT_TOPIC", "env-topic")
        args = build_parser("test", "go-mqtt-client").parse_args(
            ["--topic", "cli-topic", "--client-id", "cli-client", "--interval", "2"]
        )

        config = config_from_args(args, "go-mqtt-client")

        assert config.topic == "cli-topic"
        assert config.client_id == "cli-client"
        assert config.publish_interval == 2.0

    def test_mqtt_log_file(self):
        """Test the client log follows --log-dir and --no-file-log."""
        parser = build_parser("test", "go-mqtt-client")

        assert mqtt_log_file(parser.parse_args(["--log-dir", "out"])) == str(Path("out") / "mqtt.log")
        assert mqtt_log_file(parser.parse_args(["--no-file-log"])) is None


class TestLogger:
    """Test cases for Logger."""

    def test_tagged_messages_reach_file(self, tmp_path):
        """Test tagged messages are written to the timestamped log file."""
        Logger.init(log_dir=str(tmp_path), console=False)
        Logger.get_logging_method("SUBSCRIBER")("Subscribed to topic: iot-messages")
        Logger.reset()

        files = list(tmp_path.glob("mqttdemo_*.log"))
        assert len(files) == 1
        assert "[SUBSCRIBER] Subscribed to topic: iot-messages" in files[0].read_text(encoding="utf-8")

    def test_console_output(self, capsys):
        """Test console output goes to stdout."""
        Logger.init(file=False)
        Logger.get_logging_method("MAIN")("hello")

        assert "[MAIN] hello" in capsys.readouterr().out
        assert Logger.get_log_dir() is None

    def test_get_logger(self):
        """Test get_logger returns the logger configured by init."""
        Logger.init(file=False, console=False)
        logger = get_logger("mqttdemo")

        assert logger.name == "mqttdemo"
        assert isinstance(logger.handlers[0], logging.NullHandler)


class TestEntryScripts:
    """Test cases for the run_* entry points."""

    def test_invalid_config_exit_code(self, clean_env):
        """Test an invalid broker URI exits with INVALID_CONFIG."""
        code = run_subscriber.main(["--broker", "http://localhost:1883", "--no-file-log"])

        assert code == ErrorCode.INVALID_CONFIG

    def test_subscriber_wiring(self, clean_env):
        """Test the subscriber script runs the supervisor and returns its code."""
        with patch.object(run_subscriber, "Subscriber") as subscriber_cls:
            subscriber_cls.return_value.run.return_value = 0

            assert run_subscriber.main(["--no-file-log"]) == 0

        client = subscriber_cls.call_args[0][0]
        assert client.config.client_id == "go-mqtt-subscriber"

    def test_device_data_wiring(self, clean_env):
        """Test the telemetry script runs its publisher."""
        with patch.object(run_device_data, "DeviceDataPublisher") as publisher_cls:
            publisher_cls.return_value.run.return_value = ErrorCode.CONNECT_FAILED

            assert run_device_data.main(["--no-file-log", "--seed", "1"]) == ErrorCode.CONNECT_FAILED

        client = publisher_cls.call_args[0][0]
        assert client.config.client_id == "go-mqtt-client"

    def test_simple_wiring(self, clean_env):
        """Test the simple script honours --interval."""
        with patch.object(run_simple_example, "SimplePublisher") as publisher_cls:
            publisher_cls.return_value.run.return_value = 0

            assert run_simple_example.main(["--no-file-log", "--interval", "0.5"]) == 0

        client = publisher_cls.call_args[0][0]
        assert client.config.publish_interval == 0.5
