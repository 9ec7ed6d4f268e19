"""Centralized logging utilities.

This module provides a unified logging interface for the publishers and the
subscriber.

Logging Architecture:
- Main log: mqttdemo_YYYYMMDD_HHMMSS.log (console + file)
- Broker client log: mqtt.log (file only, see utils.mqtt.client)

Console output goes to stdout: lifecycle and per-message traces are the
programs' only output surface.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional


LOG_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Logger:
    """Centralized logger with tag-based logging support.

    Example:
        >>> Logger.init(log_dir="logs")
        >>> log = Logger.get_logging_method("SUBSCRIBER")
        >>> log("Subscribed to topic: iot-messages")
        [2024-01-01 12:00:00] [SUBSCRIBER] Subscribed to topic: iot-messages
    """

    _logger: Optional[logging.Logger] = None
    _log_dir: Optional[Path] = None
    _initialized: bool = False
    _formatter: Optional[logging.Formatter] = None

    @classmethod
    def init(
        cls,
        log_dir: str = "logs",
        level: int = logging.INFO,
        console: bool = True,
        file: bool = True,
    ) -> None:
        """Initialize the logging system.

        Args:
            log_dir: Directory for log files.
            level: Logging level (default INFO).
            console: Whether to output to stdout.
            file: Whether to output to file.
        """
        if cls._initialized:
            return

        cls._logger = logging.getLogger("mqttdemo")
        cls._logger.setLevel(level)
        cls._logger.handlers.clear()
        cls._logger.propagate = False

        cls._formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(cls._formatter)
            cls._logger.addHandler(console_handler)

        if file:
            cls._log_dir = Path(log_dir)
            cls._log_dir.mkdir(parents=True, exist_ok=True)
            log_file = cls._log_dir / f"mqttdemo_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(cls._formatter)
            cls._logger.addHandler(file_handler)

        if not cls._logger.handlers:
            cls._logger.addHandler(logging.NullHandler())

        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Close handlers and forget the configuration.

        Used by entry scripts that re-initialize with CLI options, and by tests.
        """
        if cls._logger:
            for handler in list(cls._logger.handlers):
                handler.close()
                cls._logger.removeHandler(handler)
        cls._logger = None
        cls._log_dir = None
        cls._formatter = None
        cls._initialized = False

    @classmethod
    def get_logging_method(
        cls,
        tag_name: str,
        level: int = logging.INFO,
    ) -> Callable[[str], None]:
        """Get a logging method with a specific tag.

        Args:
            tag_name: Tag to prepend to log messages.
            level: Level the messages are logged at.

        Returns:
            A callable that logs messages with the specified tag.

        Example:
            >>> log = Logger.get_logging_method("PUBLISHER")
            >>> log("Connected to MQTT broker")
            [2024-01-01 12:00:00] [PUBLISHER] Connected to MQTT broker
        """
        if not cls._initialized:
            cls.init()

        def log_method(message: str) -> None:
            # Resolved per call so a re-init after reset() is picked up
            logger = cls._logger or logging.getLogger("mqttdemo")
            logger.log(level, f"[{tag_name}] {message}")

        return log_method

    @classmethod
    def title(cls, message: str, char: str = "=", width: int = 60) -> None:
        """Log a title message with decorative borders.

        Args:
            message: Title message.
            char: Character for border.
            width: Total width of the title.
        """
        if not cls._initialized:
            cls.init()

        border = char * width
        cls._logger.info(border)
        cls._logger.info(message.center(width))
        cls._logger.info(border)

    @classmethod
    def get_log_dir(cls) -> Optional[Path]:
        """Get the log directory path.

        Returns:
            Path to log directory or None if file logging is off.
        """
        return cls._log_dir


def get_logger(name: str = "mqttdemo") -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name.

    Returns:
        Logger instance.
    """
    if not Logger._initialized:
        Logger.init()
    return logging.getLogger(name)
