"""Processor stage of the subscriber pipeline."""

import threading
from typing import Callable, Optional

from utils.mqtt import InboundMessage
from .cancel import CancelToken
from .channel import Cancelled, Channel, ChannelClosed


# Bound on each forward to the output channel after cancellation
FLUSH_SEND_TIMEOUT = 1.0  # seconds


def format_message(message: InboundMessage) -> str:
    """Render the per-message trace line."""
    return f"Received message: {message.payload_text()} from topic: {message.topic}"


class Processor:
    """Single worker thread moving messages from the input to the output channel.

    For every message it emits one trace line, then forwards the message.
    The worker returns when the cancellation token fires or when the input
    channel is closed and drained. On cancellation, messages already buffered
    in the input are still emitted and forwarded first. The output channel is
    closed on return either way.
    """

    def __init__(
        self,
        source: Channel,
        sink: Channel,
        cancel: CancelToken,
        emit: Callable[[str], None] = print,
    ):
        """Initialize processor.

        Args:
            source: Input channel.
            sink: Output channel, closed when the worker returns.
            cancel: Pipeline cancellation token.
            emit: Receives one trace line per message.
        """
        self._source = source
        self._sink = sink
        self._cancel = cancel
        self._emit = emit
        self._thread: Optional[threading.Thread] = None
        self._processed = 0

    @property
    def processed(self) -> int:
        """Messages emitted so far."""
        return self._processed

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="PipelineProcessor",
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker thread.

        Returns:
            True if the worker has finished (or never started).
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Worker loop. Runs on the calling thread when invoked directly."""
        try:
            while True:
                try:
                    message = self._source.recv(self._cancel)
                except Cancelled:
                    self._flush()
                    return
                except ChannelClosed:
                    return

                self._emit(format_message(message))
                self._processed += 1

                if not self._sink.send(message, self._cancel):
                    self._flush()
                    return
        finally:
            self._sink.close()

    def _flush(self) -> None:
        """Emit and forward messages accepted before cancellation."""
        forward = True
        for message in self._source.drain():
            self._emit(format_message(message))
            self._processed += 1
            if forward:
                forward = self._sink.send(message, timeout=FLUSH_SEND_TIMEOUT)
