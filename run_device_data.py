#!/usr/bin/env python3
"""Telemetry publisher entry point.

Publishes one JSON bracelet reading per second to the broker until
interrupted (Ctrl+C or SIGTERM).

Usage:
    # Run with default settings (tcp://localhost:1883, topic iot-messages)
    python run_device_data.py

    # Run against another broker with reproducible payloads
    python run_device_data.py --broker tcp://broker.local:1883 --seed 7
"""

import os
import sys
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core import PUBLISHER_CLIENT_ID, ErrorCode
from publisher import DeviceDataPublisher
from telemetry import PayloadSynthesizer
from utils import Logger, MQTTClient, ShutdownSignal
from utils.cli import build_parser, config_from_args, init_logging, mqtt_log_file


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser("Publish synthetic IoT telemetry", PUBLISHER_CLIENT_ID)
    args = parser.parse_args(argv)

    init_logging(args)
    log = Logger.get_logging_method("MAIN")

    config = config_from_args(args, PUBLISHER_CLIENT_ID)
    try:
        config.validate()
    except ValueError as e:
        log(f"Invalid configuration: {e}")
        return int(ErrorCode.INVALID_CONFIG)

    Logger.title("Device Data Publisher")
    log(f"Broker: {config.broker}, topic: {config.topic}, client_id: {config.client_id}")

    client = MQTTClient(config, log_file=mqtt_log_file(args))
    with ShutdownSignal() as shutdown:
        publisher = DeviceDataPublisher(client, shutdown, PayloadSynthesizer(args.seed))
        return publisher.run()


if __name__ == "__main__":
    sys.exit(main())
