"""
Client-side throttle groups.

MWS meters each operation with a leaky bucket: a request quota that refills
by one request every restore interval. The same bookkeeping is kept here per
(seller, group) so a burst of calls waits locally instead of drawing
``RequestThrottled`` errors.
"""
import time
from typing import Dict, Optional, Tuple


class ThrottleBucket:
    def __init__(self, limit: int, restore_seconds: float) -> None:
        self.limit = max(1, int(limit))
        self.restore_seconds = float(restore_seconds)
        self.level = 0.0
        self.updated = time.monotonic()

    def _drain(self, now: float) -> None:
        if self.restore_seconds <= 0:
            self.level = 0.0
        else:
            restored = (now - self.updated) / self.restore_seconds
            self.level = max(0.0, self.level - restored)
        self.updated = now

    def reserve(self, now: Optional[float] = None) -> float:
        """
        Take one request slot.

        Returns:
            Seconds the caller must wait before sending the request
        """
        now = time.monotonic() if now is None else now
        self._drain(now)
        delay = 0.0
        if self.level + 1 > self.limit:
            delay = (self.level + 1 - self.limit) * self.restore_seconds
        self.level += 1
        return delay


class ThrottleRegistry:
    """Buckets shared by every client in the process, keyed by seller and group."""

    def __init__(self) -> None:
        self._buckets: Dict[Tuple[str, str], ThrottleBucket] = {}

    def bucket(self, seller_id: str, group: str, limit: int, restore_seconds: float) -> ThrottleBucket:
        key = (seller_id, group)
        bucket = self._buckets.get(key)
        if (
            bucket is None
            or bucket.limit != max(1, int(limit))
            or bucket.restore_seconds != float(restore_seconds)
        ):
            bucket = ThrottleBucket(limit, restore_seconds)
            self._buckets[key] = bucket
        return bucket

    def reserve(self, seller_id: str, group: str, limit: int, restore_seconds: float) -> float:
        return self.bucket(seller_id, group, limit, restore_seconds).reserve()

    def reset(self) -> None:
        self._buckets.clear()


throttle_registry = ThrottleRegistry()
