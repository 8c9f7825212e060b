from datetime import datetime

from src.app.services.clock import Clock


class SystemClock(Clock):
    """Wall clock, naive UTC"""

    def now(self) -> datetime:
        return datetime.utcnow()
