"""
Retry delays for transient Apple Music failures.

Hey future me - this is the ONLY place retry delays are computed.

ALGORITHM: capped exponential backoff with jitter
- Attempt 0 (first retry): base            (default 0.2s)
- Attempt 1:               base * 2        (0.4s)
- Attempt 2:               base * 4        (0.8s)
- ...capped at `cap`                       (default 10s)
- Jitter spreads every delay by +-jitter   (default 20%)

RETRY-AFTER on 429:
- The server hint wins when it is longer: delay = max(computed, hint)
- The hint is NOT capped - waiting less than Apple asked just earns another 429

USAGE:
    policy = BackoffPolicy(base=0.2, cap=10.0, jitter=0.2)
    delay = policy.delay(attempt, retry_after=parse_retry_after(header))
"""

import math
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


@dataclass(frozen=True)
class BackoffPolicy:
    """Capped exponential backoff.

    Attributes:
        base: Delay before the first retry, in seconds
        cap: Upper bound for the computed delay, in seconds
        jitter: Relative spread, 0.2 means the delay lands in [0.8x, 1.2x]
        multiplier: Growth factor per attempt
        rng: Returns a float in [0, 1), injectable for deterministic tests
    """

    base: float = 0.2
    cap: float = 10.0
    jitter: float = 0.2
    multiplier: float = 2.0
    rng: Callable[[], float] = field(default=random.random, compare=False)

    def __post_init__(self) -> None:
        if self.base <= 0 or self.cap <= 0:
            raise ValueError("Backoff base and cap must be positive")
        if not 0 <= self.jitter < 1:
            raise ValueError("Backoff jitter must be in [0, 1)")
        if self.multiplier < 1:
            raise ValueError("Backoff multiplier must be >= 1")

    def computed(self, attempt: int) -> float:
        """Exponential delay for a zero-based retry attempt, capped, before jitter."""
        # min() first so large attempt numbers never overflow the float power.
        exponent = min(attempt, 64)
        return min(self.cap, self.base * (self.multiplier**exponent))

    def delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Seconds to wait before retry number ``attempt`` (zero-based).

        Args:
            attempt: How many retries happened before this one
            retry_after: Server Retry-After hint in seconds, if any

        Returns:
            Delay in seconds, never below ``retry_after``
        """
        delay = self.computed(attempt)
        if self.jitter:
            spread = (self.rng() * 2.0 - 1.0) * self.jitter
            delay = delay * (1.0 + spread)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return max(delay, 0.0)


def parse_retry_after(
    value: str | None, now: Callable[[], datetime] | None = None
) -> float | None:
    """Parse a Retry-After header (delta-seconds or HTTP-date) into seconds.

    Returns None when the header is absent or unparsable; a date in the past
    yields 0.0.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds) or seconds < 0:
            return None
        return seconds

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    current = now() if now is not None else datetime.now(UTC)
    return max((when - current).total_seconds(), 0.0)
