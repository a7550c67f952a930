"""Wall-clock helpers.

Expiry timestamps are absolute epoch milliseconds so they survive a
round trip through persisted state (unlike time.monotonic()).
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)
