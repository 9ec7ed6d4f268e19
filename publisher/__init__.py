"""Publisher module.

This module provides the tick-driven publishers:
- PublisherBase: Shared connect/publish/shutdown loop
- DeviceDataPublisher: JSON bracelet telemetry
- SimplePublisher: Random fixed strings
"""

from .base import PublisherBase
from .device_data import DeviceDataPublisher
from .simple import SimplePublisher

__all__ = [
    "PublisherBase",
    "DeviceDataPublisher",
    "SimplePublisher",
]
