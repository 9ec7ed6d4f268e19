"""Cancellation token shared by the subscriber's workers."""

import threading
from typing import Optional


class CancelToken:
    """Cancel-once signal observable from any thread.

    Example:
        >>> token = CancelToken()
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Signal cancellation. Further calls have no effect."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled.

        Args:
            timeout: Maximum time to wait in seconds (None = forever).

        Returns:
            True if cancelled, False on timeout.
        """
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"
