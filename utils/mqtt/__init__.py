# -*- coding: utf-8 -*-
"""MQTT Client Module.

Provides a token-based MQTT client built on paho-mqtt, plus the
configuration, message and statistics types it works with.

Example:
    Publishing::

        from utils.mqtt import MQTTClient, MQTTConfig

        client = MQTTClient(MQTTConfig(broker="tcp://localhost:1883"))
        token = client.connect()
        if token.wait(30) and token.error is None:
            client.publish("iot-messages", 0, False, b"Hello, World!").wait()
        client.disconnect(250)

    Subscribing::

        def handler(message):
            print(message.topic, message.payload)

        client.subscribe("iot-messages", 1, handler).wait()

    Creating configuration from environment::

        config = MQTTConfig.from_env(client_id="go-mqtt-subscriber")
"""

from .client import MQTTClient, MessageHandler
from .config import MQTTConfig
from .messages import InboundMessage
from .stats import MQTTStatistics
from .token import PublishToken, Token

__all__ = [
    "MQTTClient",
    "MessageHandler",
    "MQTTConfig",
    "InboundMessage",
    "MQTTStatistics",
    "PublishToken",
    "Token",
]

__version__ = "1.0.0"
