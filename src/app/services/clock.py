from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Time source - injected so expiry logic can be tested with a fixed clock"""

    @abstractmethod
    def now(self) -> datetime:
        """Current naive UTC time (matches how timestamps are stored)"""
        pass
