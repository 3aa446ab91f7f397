"""
Rate limiting package for the contact service.

Holds the fixed-window limiter and the request-facing middleware that
enforces a per-address submission budget on the public write path.
"""

from .fixed_window import FixedWindowRateLimiter, RateLimitMiddleware, RateWindow, get_client_address

__all__ = ["FixedWindowRateLimiter", "RateLimitMiddleware", "RateWindow", "get_client_address"]
