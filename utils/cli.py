"""Command line helpers shared by the entry scripts."""

import argparse
import logging
import os
from typing import Optional

from .logger import Logger
from .mqtt import MQTTConfig


def build_parser(description: str, default_client_id: str, publisher: bool = True) -> argparse.ArgumentParser:
    """Build the argument parser common to all programs.

    Flags left unset fall back to MQTT_* environment variables, then to the
    built-in defaults.

    Args:
        description: Program description.
        default_client_id: Client identifier used when none is given.
        publisher: Whether to add publisher-only flags.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--broker",
        type=str,
        default=None,
        help="Broker URI (default: $MQTT_BROKER or tcp://localhost:1883)"
    )
    parser.add_argument(
        "--client-id",
        type=str,
        default=None,
        help=f"MQTT client identifier (default: $MQTT_CLIENT_ID or {default_client_id})"
    )
    parser.add_argument(
        "--topic",
        type=str,
        default=None,
        help="Topic (default: $MQTT_TOPIC or iot-messages)"
    )
    if publisher:
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between publishes (default: 1.0)"
        )
        parser.add_argument(
            "--seed",
            type=int,
            default=None,
            help="Random seed for reproducible payloads"
        )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs)"
    )
    parser.add_argument(
        "--no-file-log",
        action="store_true",
        help="Log to stdout only"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def config_from_args(args: argparse.Namespace, default_client_id: str) -> MQTTConfig:
    """Build the MQTT configuration from parsed arguments and the environment.

    Args:
        args: Parsed arguments.
        default_client_id: Client identifier used when none is configured.

    Returns:
        MQTTConfig instance (not yet validated).
    """
    config = MQTTConfig.from_env(
        broker=args.broker,
        client_id=args.client_id,
        topic=args.topic,
        publish_interval=getattr(args, "interval", None),
    )
    if not args.client_id and not os.environ.get("MQTT_CLIENT_ID"):
        config.client_id = default_client_id
    return config


def init_logging(args: argparse.Namespace) -> None:
    """Initialize the Logger from parsed arguments."""
    Logger.init(
        log_dir=args.log_dir,
        level=logging.DEBUG if args.debug else logging.INFO,
        file=not args.no_file_log,
    )


def mqtt_log_file(args: argparse.Namespace) -> Optional[str]:
    """Path of the broker client log, None when file logging is off."""
    if args.no_file_log:
        return None
    return os.path.join(args.log_dir, "mqtt.log")
