"""Injectable time source.

Services take a ``clock`` argument so tests can control expiry and
trailing-window calculations without sleeping.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current time in UTC."""
    return datetime.now(UTC)
