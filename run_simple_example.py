#!/usr/bin/env python3
"""Simple publisher entry point.

Publishes one of five fixed strings per second until interrupted
(Ctrl+C or SIGTERM).

Usage:
    python run_simple_example.py
    python run_simple_example.py --interval 0.5
"""

import os
import sys
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core import PUBLISHER_CLIENT_ID, ErrorCode
from publisher import SimplePublisher
from telemetry import PayloadSynthesizer
from utils import Logger, MQTTClient, ShutdownSignal
from utils.cli import build_parser, config_from_args, init_logging, mqtt_log_file


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser("Publish random greeting strings", PUBLISHER_CLIENT_ID)
    args = parser.parse_args(argv)

    init_logging(args)
    log = Logger.get_logging_method("MAIN")

    config = config_from_args(args, PUBLISHER_CLIENT_ID)
    try:
        config.validate()
    except ValueError as e:
        log(f"Invalid configuration: {e}")
        return int(ErrorCode.INVALID_CONFIG)

    Logger.title("Simple Publisher")
    log(f"Broker: {config.broker}, topic: {config.topic}, client_id: {config.client_id}")

    client = MQTTClient(config, log_file=mqtt_log_file(args))
    with ShutdownSignal() as shutdown:
        publisher = SimplePublisher(client, shutdown, PayloadSynthesizer(args.seed))
        return publisher.run()


if __name__ == "__main__":
    sys.exit(main())
