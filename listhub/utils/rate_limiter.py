"""
Rate Limiter Utility
Token bucket rate limiter and adaptive delay for API clients
"""
import asyncio
import logging
import time
from typing import Dict

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket rate limiter shared by every request to one service"""

    def __init__(self, service_name: str, rate: int):
        self.service_name = service_name
        self.rate = rate  # requests per second, 0 disables
        self.tokens = float(rate)
        self.last_update = time.monotonic()
        self.blocked_until = 0.0
        self.lock = asyncio.Lock()

    def penalize(self, seconds: float):
        """Hold back all callers for `seconds` after the upstream reported rate limiting"""
        until = time.monotonic() + seconds
        if until > self.blocked_until:
            self.blocked_until = until
            logger.warning(f"{self.service_name} rate limited, backing off for {seconds:.1f}s")

    async def acquire(self):
        """Acquire a token, waiting if necessary"""
        async with self.lock:
            now = time.monotonic()
            if self.blocked_until > now:
                await asyncio.sleep(self.blocked_until - now)
                now = time.monotonic()

            if self.rate <= 0:
                return

            elapsed = now - self.last_update

            # Add tokens based on time elapsed
            self.tokens = min(self.rate, self.tokens + elapsed * self.rate)
            self.last_update = now

            if self.tokens >= 1:
                self.tokens -= 1
            else:
                # Wait until we have a token
                wait_time = (1 - self.tokens) / self.rate
                await asyncio.sleep(wait_time)
                self.tokens = 0
                self.last_update = time.monotonic()


class RateLimiterRegistry:
    """Named limiters owned by one engine context"""

    def __init__(self, disabled: bool = False):
        self.disabled = disabled
        self._limiters: Dict[str, RateLimiter] = {}

    def get(self, service_name: str, rate: int) -> RateLimiter:
        if service_name not in self._limiters:
            self._limiters[service_name] = RateLimiter(service_name, 0 if self.disabled else rate)
        return self._limiters[service_name]


class AdaptiveDelay:
    """
    Inter-round delay that grows while an upstream is slow.

    Each observed round longer than `slow_threshold` adds `step` seconds
    (capped at `max_delay`); a fast round halves the current delay.
    """

    def __init__(self, slow_threshold: float, step: float, max_delay: float):
        self.slow_threshold = slow_threshold
        self.step = step
        self.max_delay = max_delay
        self.current = 0.0

    def observe(self, elapsed: float) -> float:
        if elapsed > self.slow_threshold:
            self.current = min(self.max_delay, self.current + self.step)
        else:
            self.current = self.current / 2 if self.current > 0.01 else 0.0
        return self.current
