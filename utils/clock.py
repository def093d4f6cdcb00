"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Columns are stored without timezone information, so every comparison in
    the subscription engine happens on naive UTC values.
    """

    return datetime.now(UTC).replace(tzinfo=None)
