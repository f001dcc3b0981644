# 📄 File: gardenbeds/shared/core/__init__.py
# 🧭 Purpose (Layman Explanation):
# The basic building blocks: error types, short-term memory caches, request quotas and retries.
# 🧪 Purpose (Technical Summary):
# Core primitives: exception hierarchy, TTL caches, sliding-window rate limiter, retry policy.
# 🔄 Connected Modules / Calls From:
# gardenbeds.shared.infrastructure, gardenbeds.modules.garden

from .cache import CacheRegistry, TTLCache
from .exceptions import GardenException
from .rate_limiter import RateLimitConfig, RateLimiterRegistry, SlidingWindowRateLimiter
from .retry import RetryPolicy

__all__ = [
    "CacheRegistry",
    "TTLCache",
    "GardenException",
    "RateLimitConfig",
    "RateLimiterRegistry",
    "SlidingWindowRateLimiter",
    "RetryPolicy",
]
