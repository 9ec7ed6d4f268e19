"""Shutdown signal handling.

Provides a single-shot shutdown latch fed by SIGINT and SIGTERM, used by the
publishers to leave their loop and by the subscriber to start draining.
"""

import signal
import threading
from typing import Dict, Iterable, Optional


DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignal:
    """Single-shot shutdown latch bound to OS termination signals.

    Must be installed from the main thread (a Python signal handler
    restriction). Handlers that were registered before ``install()`` are
    restored by ``restore()``.

    Example:
        >>> with ShutdownSignal() as shutdown:
        ...     while not shutdown.wait(1.0):
        ...         do_work()
    """

    def __init__(self, signals: Iterable[int] = DEFAULT_SIGNALS):
        """Initialize the latch.

        Args:
            signals: Signal numbers that trigger shutdown.
        """
        self._signals = tuple(signals)
        self._event = threading.Event()
        self._previous: Dict[int, object] = {}
        self._received: Optional[int] = None

    def install(self) -> "ShutdownSignal":
        """Register the signal handlers.

        Returns:
            Self for method chaining.
        """
        for signum in self._signals:
            if signum not in self._previous:
                self._previous[signum] = signal.signal(signum, self._handle)
        return self

    def restore(self) -> None:
        """Restore the handlers that were active before install()."""
        while self._previous:
            signum, handler = self._previous.popitem()
            signal.signal(signum, handler)

    def trigger(self, signum: Optional[int] = None) -> None:
        """Set the latch programmatically.

        Args:
            signum: Signal number to record as the cause, if any.
        """
        if self._event.is_set():
            return
        self._received = signum
        self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown is requested.

        Args:
            timeout: Maximum time to wait in seconds (None = forever).

        Returns:
            True if shutdown was requested, False on timeout.
        """
        if timeout is None:
            # Signal handlers only run between bytecodes of the main thread
            while not self._event.wait(0.5):
                pass
            return True
        return self._event.wait(timeout)

    def is_set(self) -> bool:
        """Check whether shutdown was requested."""
        return self._event.is_set()

    @property
    def received(self) -> Optional[int]:
        """Signal number that triggered shutdown, if any."""
        return self._received

    def _handle(self, signum, frame) -> None:  # pylint: disable=unused-argument
        self.trigger(signum)

    def __enter__(self) -> "ShutdownSignal":
        """Enter context manager, install handlers."""
        return self.install()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager, restore handlers."""
        self.restore()
