"""
Request guards for the scan and history routes: API token and per-client rate limit.
"""

import logging
import secrets
import threading
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional, Tuple

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from securescan.config import settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name=settings.api_token_header, auto_error=False)


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def verify_api_token(
    request: Request,
    api_key: Optional[str] = Depends(api_key_header),
):
    """
    Require the configured API token in the token header.

    With no token configured the check is skipped (development mode).
    """
    if not settings.api_token:
        if settings.is_production:
            logger.warning("API token not configured in production mode!")
        return None

    if not api_key:
        logger.warning(f"Missing API key from {_client_host(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing API key. Provide {settings.api_token_header} header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(api_key, settings.api_token):
        logger.warning(f"Invalid API key attempt from {_client_host(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


class RateLimiter:
    """
    Sliding-window request counter keyed by client.

    Each key keeps the timestamps of its requests inside the window, oldest
    first. Keys whose requests have all left the window are dropped by a
    sweep that runs at most once per window.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float, window: int):
        if now - self._last_sweep < window:
            return
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= window]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def _expire(self, hits: Deque[float], now: float, window: int):
        while hits and now - hits[0] >= window:
            hits.popleft()

    def is_allowed(self, key: str, limit: int, window: int) -> Tuple[bool, int]:
        """
        Record a request for `key` if it fits in the window.

        Returns:
            (allowed, remaining requests in the window)
        """
        with self._lock:
            now = self._clock()
            self._sweep(now, window)
            hits = self._hits[key]
            self._expire(hits, now, window)
            if len(hits) >= limit:
                return False, 0
            hits.append(now)
            return True, limit - len(hits)

    def retry_after(self, key: str, window: int) -> int:
        """Seconds until the oldest request for `key` leaves the window."""
        with self._lock:
            hits = self._hits.get(key)
            if not hits:
                return 0
            return max(0, int(window - (self._clock() - hits[0])))

    def reset(self):
        with self._lock:
            self._hits.clear()
            self._last_sweep = self._clock()


rate_limiter = RateLimiter()


async def check_rate_limit(request: Request):
    """Per-IP rate limit; disabled when rate_limit_requests is 0."""
    limit = settings.rate_limit_requests
    if not limit:
        return

    client = _client_host(request)
    allowed, remaining = rate_limiter.is_allowed(client, limit, settings.rate_limit_window)

    request.state.rate_limit_remaining = remaining
    request.state.rate_limit_limit = limit

    if not allowed:
        retry_after = rate_limiter.retry_after(client, settings.rate_limit_window)
        logger.warning(f"Rate limit exceeded for {client}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )
