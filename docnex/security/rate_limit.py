"""Sliding-window rate limiter for AI endpoints, backed by pyrate-limiter."""

from pyrate_limiter import AbstractClock, BucketFullException, Duration, Limiter, Rate, TimeClock
from pyrate_limiter.buckets import InMemoryBucket

from docnex.core.exceptions import AIRateLimitError
from docnex.core.logging import get_logger


logger = get_logger(__name__)

_ITEM_NAME = "ai"


class RateLimiter:
    """Allow at most ``max_requests`` in any ``window_seconds`` span.

    Wraps a single in-memory pyrate-limiter bucket in fail-fast mode, so a
    full bucket is reported immediately instead of blocking the event loop.

    Args:
        max_requests: Requests allowed per window
        window_seconds: Window length
        clock: pyrate-limiter clock (milliseconds), wall time by default
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: AbstractClock | None = None,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._interval_ms = int(window_seconds * Duration.SECOND.value)
        self._clock = clock or TimeClock()
        self._bucket = InMemoryBucket([Rate(max_requests, self._interval_ms)])
        self._limiter = Limiter(
            self._bucket,
            clock=self._clock,
            raise_when_fail=True,
            max_delay=None,
        )

    def _window_timestamps(self) -> list[int]:
        lower_bound = self._clock.now() - self._interval_ms
        return [item.timestamp for item in self._bucket.items if item.timestamp > lower_bound]

    def can_make_request(self) -> bool:
        """Consume one request slot if available."""
        try:
            self._limiter.try_acquire(_ITEM_NAME)
        except BucketFullException as e:
            logger.warning("Rate limit bucket full", meta_info=str(e.meta_info))
            return False
        return True

    def get_remaining_requests(self) -> int:
        return max(0, self.max_requests - len(self._window_timestamps()))

    def get_time_until_reset(self) -> float:
        """Seconds until the oldest request in the window expires."""
        timestamps = self._window_timestamps()
        if not timestamps:
            return 0.0
        return max(0.0, (timestamps[0] + self._interval_ms - self._clock.now()) / 1000)

    def acquire(self) -> None:
        """Consume a slot or raise.

        Raises:
            AIRateLimitError: With retry_after set to the time until a slot frees
        """
        if not self.can_make_request():
            raise AIRateLimitError(
                "Rate limit exceeded",
                retry_after=round(self.get_time_until_reset(), 1),
            )
