"""Bounded FIFO channel connecting the subscriber's pipeline stages.

Semantics:
- send() blocks while the channel is full, until space frees up, the
  cancellation token fires, or the timeout expires.
- recv() blocks while the channel is empty. Items sent before close() can
  still be received; once closed and empty, recv() raises ChannelClosed.
- send() on a closed channel raises ChannelClosed.
"""

import threading
import time
from collections import deque
from typing import Deque, Generic, Iterator, List, Optional, TypeVar

from .cancel import CancelToken


T = TypeVar("T")

# Blocked operations re-check their cancellation token at this interval
POLL_INTERVAL = 0.05


class ChannelClosed(Exception):
    """Raised when sending on a closed channel or receiving from a drained one."""


class Cancelled(Exception):
    """Raised when a blocked receive observes cancellation."""


class Channel(Generic[T]):
    """Thread-safe bounded channel.

    Example:
        >>> ch = Channel(capacity=2, name="in")
        >>> ch.send("a")
        True
        >>> ch.recv()
        'a'
        >>> ch.close()
    """

    def __init__(self, capacity: int, name: str = "", poll_interval: float = POLL_INTERVAL):
        """Initialize channel.

        Args:
            capacity: Maximum number of buffered items.
            name: Channel name for reprs and logs.
            poll_interval: Interval at which blocked operations check their
                cancellation token.

        Raises:
            ValueError: If capacity is not positive.
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.name = name
        self._capacity = capacity
        self._poll_interval = poll_interval
        self._items: Deque[T] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def send(
        self,
        item: T,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> bool:
        """Append an item, blocking while the channel is full.

        Args:
            item: Item to send.
            cancel: Token that aborts a blocked send.
            timeout: Maximum time to block in seconds (None = forever).

        Returns:
            True if the item was enqueued, False if cancelled or timed out.

        Raises:
            ChannelClosed: If the channel is closed.
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._cond:
            while True:
                if self._closed:
                    raise ChannelClosed(f"send on closed channel {self.name}")
                if cancel is not None and cancel.cancelled:
                    return False
                if len(self._items) < self._capacity:
                    self._items.append(item)
                    self._cond.notify_all()
                    return True

                wait = self._poll_interval
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return False
                    wait = min(wait, remaining)
                self._cond.wait(wait)

    def try_send(self, item: T) -> bool:
        """Append an item without blocking.

        Returns:
            True if enqueued, False if the channel is full.

        Raises:
            ChannelClosed: If the channel is closed.
        """
        with self._cond:
            if self._closed:
                raise ChannelClosed(f"send on closed channel {self.name}")
            if len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def recv(
        self,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Take the oldest item, blocking while the channel is empty.

        Cancellation is checked before every take, so a cancelled receiver
        returns even when items are still buffered; use drain() to collect them.

        Args:
            cancel: Token that aborts the receive.
            timeout: Maximum time to block in seconds (None = forever).

        Returns:
            The received item.

        Raises:
            Cancelled: If the token fires.
            ChannelClosed: If the channel is closed and empty.
            TimeoutError: If the timeout expires.
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._cond:
            while True:
                if cancel is not None and cancel.cancelled:
                    raise Cancelled(f"receive on {self.name} cancelled")
                if self._items:
                    item = self._items.popleft()
                    self._cond.notify_all()
                    return item
                if self._closed:
                    raise ChannelClosed(f"channel {self.name} closed")

                wait = self._poll_interval
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise TimeoutError(f"receive on {self.name} timed out")
                    wait = min(wait, remaining)
                self._cond.wait(wait)

    def drain(self) -> List[T]:
        """Remove and return every buffered item without blocking."""
        with self._cond:
            items = list(self._items)
            self._items.clear()
            self._cond.notify_all()
            return items

    def close(self) -> None:
        """Close the channel. Idempotent."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        """Receive until the channel is closed and drained."""
        while True:
            try:
                yield self.recv()
            except ChannelClosed:
                return

    def __repr__(self) -> str:
        return f"Channel({self.name!r}, capacity={self._capacity}, size={len(self)})"
