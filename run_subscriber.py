#!/usr/bin/env python3
"""Subscriber entry point.

Subscribes to the topic with QoS 1 and prints every message until
interrupted (Ctrl+C or SIGTERM), then unsubscribes, disconnects and
joins its workers.

Usage:
    python run_subscriber.py
    python run_subscriber.py --topic iot-messages --no-file-log
"""

import os
import sys
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core import SUBSCRIBER_CLIENT_ID, ErrorCode
from pipeline import Subscriber
from utils import Logger, MQTTClient, ShutdownSignal
from utils.cli import build_parser, config_from_args, init_logging, mqtt_log_file


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser(
        "Print messages received on an MQTT topic",
        SUBSCRIBER_CLIENT_ID,
        publisher=False,
    )
    args = parser.parse_args(argv)

    init_logging(args)
    log = Logger.get_logging_method("MAIN")

    config = config_from_args(args, SUBSCRIBER_CLIENT_ID)
    try:
        config.validate()
    except ValueError as e:
        log(f"Invalid configuration: {e}")
        return int(ErrorCode.INVALID_CONFIG)

    Logger.title("MQTT Subscriber")
    log(f"Broker: {config.broker}, topic: {config.topic}, client_id: {config.client_id}")

    client = MQTTClient(config, log_file=mqtt_log_file(args))
    with ShutdownSignal() as shutdown:
        return Subscriber(client, shutdown).run()


if __name__ == "__main__":
    sys.exit(main())
