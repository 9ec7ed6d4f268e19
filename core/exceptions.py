"""Custom exceptions for broker operations.

Fatal failures (connect, subscribe) abort startup. Transient failures
(encode, publish) are isolated to a single publisher tick.
"""

from .constants import ErrorCode, get_error_message


class BrokerException(Exception):
    """Base exception for broker and pipeline errors."""

    def __init__(
        self,
        message: str = "",
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    ):
        self.error_code = error_code
        self.message = message or get_error_message(error_code)
        super().__init__(self.message)

    @property
    def exit_code(self) -> int:
        """Process exit status for this error."""
        return int(self.error_code)

    def to_dict(self):
        """Convert to dictionary for structured logging."""
        return {
            "ErrCode": int(self.error_code),
            "ErrMsg": self.message,
        }


class ConnectFailure(BrokerException):
    """Exception raised when the broker is unreachable or refuses the connection."""

    def __init__(self, broker: str = "", reason: str = ""):
        message = "Failed to connect to MQTT broker"
        if broker:
            message += f" {broker}"
        if reason:
            message += f" - {reason}"
        self.broker = broker
        super().__init__(message, ErrorCode.CONNECT_FAILED)


class SubscribeFailure(BrokerException):
    """Exception raised when a subscription is rejected or times out."""

    def __init__(self, topic: str, reason: str = ""):
        message = f"Failed to subscribe to topic: {topic}"
        if reason:
            message += f" - {reason}"
        self.topic = topic
        super().__init__(message, ErrorCode.SUBSCRIBE_FAILED)


class UnsubscribeFailure(BrokerException):
    """Exception raised when an unsubscribe is rejected or times out."""

    def __init__(self, topic: str, reason: str = ""):
        message = f"Failed to unsubscribe from topic: {topic}"
        if reason:
            message += f" - {reason}"
        self.topic = topic
        super().__init__(message, ErrorCode.UNSUBSCRIBE_FAILED)


class PublishFailure(BrokerException):
    """Exception raised when a publish is not accepted by the client."""

    def __init__(self, topic: str, reason: str = ""):
        message = f"Failed to publish to topic: {topic}"
        if reason:
            message += f" - {reason}"
        self.topic = topic
        super().__init__(message, ErrorCode.PUBLISH_FAILED)


class EncodeFailure(BrokerException):
    """Exception raised when a payload cannot be serialized."""

    def __init__(self, reason: str = ""):
        message = "Failed to encode payload"
        if reason:
            message += f" - {reason}"
        super().__init__(message, ErrorCode.ENCODE_FAILED)
