"""
Rate limiter singleton — shared across the application.

Uses slowapi (built on top of limits) to throttle vote attempts per voter
identifier. The limiter is attached to `app.state.limiter` in main.py.
Throttling is admission control only; duplicate votes are stopped by the
database constraint.
"""

from slowapi import Limiter

from backend.app.api.deps import voter_identifier
from backend.app.config import settings

RATE_LIMIT_MESSAGE = "Too many votes. Please try again later."

limiter = Limiter(
    key_func=voter_identifier,
    enabled=settings.rate_limit_enabled,
    headers_enabled=True,
)
