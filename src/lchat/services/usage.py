import logging
from threading import Lock

import pendulum
from lchat.schemas.chat import Usage

logger = logging.getLogger(__name__)


class UsageTracker:
    """Running usage total for a model or provider instance"""

    def __init__(self, name: str = ''):
        self.name = name
        self._total = Usage()
        self._calls = 0
        self._last_updated: float | None = None
        self._lock = Lock()

    def add(self, usage: Usage) -> Usage:
        """Fold a usage delta into the running total and return the new total"""
        with self._lock:
            self._total = self._total + usage
            self._calls += 1
            self._last_updated = pendulum.now().timestamp()
            total = self._total
        logger.debug(f'Usage [{self.name}]: +{usage.total_tokens} tokens, '
                     f'total {total.total_tokens} tokens, ${total.price_in_usd}')
        return total

    @property
    def total(self) -> Usage:
        with self._lock:
            return self._total

    @property
    def calls(self) -> int:
        with self._lock:
            return self._calls

    @property
    def last_updated(self) -> float | None:
        return self._last_updated


def record_usage(usage: Usage, *trackers: UsageTracker) -> None:
    """Add the same delta to every tracker (model first, then provider)"""
    for tracker in trackers:
        tracker.add(usage)
