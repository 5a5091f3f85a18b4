"""Injectable clock so TTLs and date inference can be tested deterministically."""

import time
from datetime import date
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Epoch seconds."""
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> float:
        return time.time()

    def today(self) -> date:
        return date.today()
