"""
Time sources for TOTP.

TOTP functions read the time through a :class:`Clock` so callers (and tests)
can substitute a deterministic one.
"""

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning Unix time in whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Reads the real wall clock."""

    def now(self) -> int:
        return int(time.time())


@dataclass(frozen=True)
class FixedClock:
    """Always reports the same instant."""

    timestamp: int

    def now(self) -> int:
        return self.timestamp


SYSTEM_CLOCK: Clock = SystemClock()
