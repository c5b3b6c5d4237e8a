"""
Rate limiting per learner (or IP when unauthenticated).

- general API: rate_limit_api_per_minute per learner, enforced by the middleware
- content generation: rate_limit_generation_per_hour per learner, charged by
  GenerationRateLimiter only when the content provider actually calls the
  model (cached outlines and content are free)
"""

import time
from contextvars import ContextVar
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from storymode.config import Settings, get_settings
from storymode.engines.story.errors import GenerationRateLimitError
from storymode.kernel.identity.jwt import verify_access_token
from storymode.logging_config import get_logger

logger = get_logger(__name__)

# Learner (or client IP) of the current request, set by the middleware
rate_limit_identity_var: ContextVar[Optional[str]] = ContextVar("rate_limit_identity", default=None)


def _get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _get_user_id(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    payload = verify_access_token(auth[7:].strip())
    return str(payload.sub) if payload else None


class InMemoryRateLimitStore:
    """Fixed-window counters. Key -> (count, window_start, window_seconds)."""

    def __init__(self):
        self._data: Dict[str, Tuple[int, float, int]] = {}

    def check_and_incr(self, scope: str, identifier: str, limit: int, window_seconds: int) -> bool:
        """Returns True if under limit (and increments). False if over limit."""
        key = f"{scope}:{identifier}"
        now = time.monotonic()
        entry = self._data.get(key)
        if entry is None or now - entry[1] >= entry[2]:
            self._data[key] = (1, now, window_seconds)
            return True
        count, start, window = entry
        if count >= limit:
            return False
        self._data[key] = (count + 1, start, window)
        return True

    def cleanup_old(self) -> None:
        now = time.monotonic()
        stale = [k for k, (_, start, window) in self._data.items() if now - start > window]
        for k in stale:
            self._data.pop(k, None)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window rate limiting; counters live on the middleware instance."""

    def __init__(
        self,
        app,
        store: Optional[InMemoryRateLimitStore] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(app)
        self.store = store or InMemoryRateLimitStore()
        self.settings = settings

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = self.settings or get_settings()
        path = request.url.path or ""
        if not settings.rate_limit_enabled or not path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        self.store.cleanup_old()
        identifier = _get_user_id(request) or _get_client_ip(request)
        rate_limit_identity_var.set(identifier)

        if not self.store.check_and_incr("api", identifier, settings.rate_limit_api_per_minute, 60):
            return Response(
                content='{"detail":"Too many requests. Please try again later."}',
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
            )
        return await call_next(request)


class GenerationRateLimiter:
    """
    Hourly budget of model calls per learner.

    Plugged into ContentProvider as its before_generate hook, so only requests
    that really generate an outline or segment content are counted.
    """

    def __init__(
        self,
        store: Optional[InMemoryRateLimitStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store or InMemoryRateLimitStore()
        self.settings = settings

    def __call__(self, what: str) -> None:
        settings = self.settings or get_settings()
        if not settings.rate_limit_enabled:
            return
        self.store.cleanup_old()
        identifier = rate_limit_identity_var.get() or "anonymous"
        if not self.store.check_and_incr(
            "generation", identifier, settings.rate_limit_generation_per_hour, 3600
        ):
            logger.warning("Generation budget exhausted", extra={"what": what})
            raise GenerationRateLimitError("Too many requests. Please try again later.")
