"""The one place that reads the wall clock.

Handlers take a ``clock`` callable so tests can pin "now" to any value.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
