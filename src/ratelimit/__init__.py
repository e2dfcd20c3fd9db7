"""Rate limiting package."""

from src.ratelimit.limiter import RateLimiter, prune_attempt_windows

__all__ = ["RateLimiter", "prune_attempt_windows"]
