"""
Rate limiting middleware against brute force and request floods.

In-memory sliding window per client. With several workers each process
keeps its own window; a shared store would be needed for a global limit.
Login gets its own, stricter limiter keyed by IP.
"""
import hashlib
import logging
import time
from collections import deque
from typing import Deque, Dict, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from epitrack.core.config import settings

logger = logging.getLogger(__name__)

LOGIN_PATH = f"{settings.API_V1_STR}/auth/login"
EXEMPT_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")
CLEANUP_INTERVAL_SECONDS = 300


class RateLimiter:
    """Sliding window: at most `requests` hits per client in the last `window` seconds."""

    def __init__(self, requests: int = 100, window: int = 60):
        self.requests = requests
        self.window = window
        self.clients: Dict[str, Deque[float]] = {}
        self.last_cleanup = time.monotonic()

    def _expire(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def is_allowed(self, client_id: str) -> Tuple[bool, int]:
        """
        Register a hit for `client_id` if it fits in the window.

        Returns:
            (allowed, remaining)
        """
        now = time.monotonic()
        if now - self.last_cleanup > CLEANUP_INTERVAL_SECONDS:
            self._cleanup(now)

        hits = self.clients.setdefault(client_id, deque())
        self._expire(hits, now)
        if len(hits) >= self.requests:
            return False, 0
        hits.append(now)
        return True, self.requests - len(hits)

    def reset(self) -> None:
        self.clients.clear()

    def _cleanup(self, now: float) -> None:
        for client_id in list(self.clients):
            hits = self.clients[client_id]
            self._expire(hits, now)
            if not hits:
                del self.clients[client_id]
        self.last_cleanup = now
        logger.info(f"Rate limiter cleanup: {len(self.clients)} active clients")


rate_limiter = RateLimiter(
    requests=settings.RATE_LIMIT_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS,
)
login_rate_limiter = RateLimiter(
    requests=settings.LOGIN_RATE_LIMIT_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS,
)


def _client_id(request: Request) -> str:
    # Per token when authenticated so users behind one NAT don't share a budget
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return f"user:{hashlib.sha256(auth_header[7:].encode()).hexdigest()[:16]}"
    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in EXEMPT_PATHS:
            return await call_next(request)

        if path == LOGIN_PATH:
            limiter = login_rate_limiter
            client_id = f"login:{request.client.host if request.client else 'unknown'}"
        else:
            limiter = rate_limiter
            client_id = _client_id(request)

        allowed, remaining = limiter.is_allowed(client_id)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_id} on {request.method} {path}")
            # Returned, not raised: exception handlers do not see errors raised in middleware
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"success": False, "message": "Tente novamente em alguns segundos"},
                headers={
                    "Retry-After": str(limiter.window),
                    "X-RateLimit-Limit": str(limiter.requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limiter.requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Window"] = str(limiter.window)
        return response
