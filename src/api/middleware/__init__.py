"""API middleware."""

from src.api.middleware.auth import get_current_user
from src.api.middleware.rate_limit import RateLimitMiddleware

__all__ = ["get_current_user", "RateLimitMiddleware"]
