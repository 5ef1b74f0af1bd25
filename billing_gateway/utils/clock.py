"""Time source shared by the cache layers"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC now, the format cache rows are stored in"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
