"""Time-related utility functions.

RFC 3339 helpers for the telemetry wire format, plus the small timer used
to measure shutdown latency.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def now() -> datetime:
    """Get the current wall-clock instant.

    Returns:
        Timezone-aware datetime in the local timezone.
    """
    return datetime.now(timezone.utc).astimezone()


def format_rfc3339(value: datetime) -> str:
    """Format a datetime as RFC 3339 with trimmed fractional seconds.

    Trailing zeros of the fractional part are removed and the fraction is
    dropped entirely when zero, the way RFC3339Nano renders instants.
    Naive datetimes are treated as UTC.

    Args:
        value: Datetime to format.

    Returns:
        RFC 3339 string, e.g. '2024-01-01T12:00:00.5+02:00'.

    Example:
        >>> format_rfc3339(datetime(2024, 1, 1, 12, 0, 0, 500000, timezone.utc))
        '2024-01-01T12:00:00.5Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")

    offset = value.utcoffset()
    if not offset:
        return text + "Z"

    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def parse_rfc3339(text: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Accepts a 'Z' suffix and fractional seconds of any length; digits beyond
    microseconds are truncated.

    Args:
        text: Timestamp string.

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If the string is not a valid RFC 3339 timestamp.
    """
    if not text:
        raise ValueError("empty timestamp")

    value = text.strip()
    if value[-1] in ("Z", "z"):
        value = value[:-1] + "+00:00"

    # Truncate fractions longer than microseconds
    if "." in value:
        head, _, rest = value.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        if not digits:
            raise ValueError(f"invalid fractional seconds: {text}")
        value = f"{head}.{digits[:6].ljust(6, '0')}{rest}"

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no offset: {text}")
    return parsed


class Timer:
    """Simple timer for measuring execution time.

    Example:
        >>> with Timer() as timer:
        ...     pass
        >>> timer.elapsed < 1.0
        True
    """

    def __init__(self):
        """Initialize timer."""
        self._start_time: Optional[float] = None
        self._elapsed: float = 0.0

    def start(self) -> "Timer":
        """Start the timer.

        Returns:
            Self for method chaining.
        """
        self._start_time = time.perf_counter()
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time.

        Returns:
            Elapsed time in seconds.
        """
        if self._start_time is not None:
            self._elapsed = time.perf_counter() - self._start_time
            self._start_time = None
        return self._elapsed

    @property
    def elapsed(self) -> float:
        """Get elapsed time without stopping."""
        if self._start_time is not None:
            return time.perf_counter() - self._start_time
        return self._elapsed

    def __enter__(self) -> "Timer":
        """Context manager entry."""
        return self.start()

    def __exit__(self, *args) -> None:
        """Context manager exit."""
        self.stop()
