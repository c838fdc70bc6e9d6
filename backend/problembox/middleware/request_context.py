"""Request context middleware: request ids, timing, request logs, and rate limiting.

One pass per request:
- take ``X-Request-ID`` from the client (the tree store sends one per call) or mint one
- throttle per client with a token bucket
- time the handler and log method, path, status and duration

``check_rate_limit`` is a pure function over a bucket dict so it can be tested
without HTTP.
"""

import hashlib
import logging
import threading
import time
import uuid
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..core.config import settings
from ..core.logging_config import request_id_var
from ..exceptions import ErrorCode

logger = logging.getLogger(__name__)

# {client_key: (available_tokens, last_refill_timestamp)}
Bucket = Dict[str, Tuple[float, float]]

_EVICT_AGE = 120.0  # seconds without traffic before a bucket entry is dropped


def check_rate_limit(
    bucket: Bucket,
    key: str,
    max_per_minute: int,
    now: Optional[float] = None,
) -> Tuple[bool, float]:
    """Spend one token for *key* if available.

    Args:
        bucket: Per-key state, modified in place.
        key: Client identifier.
        max_per_minute: Sustained rate cap; 0 or less disables limiting.
        now: Injectable clock; defaults to ``time.monotonic()``.

    Returns:
        ``(allowed, retry_after)`` where *retry_after* is 0.0 when allowed,
        otherwise seconds until the next token.
    """
    if max_per_minute <= 0:
        return True, 0.0
    if now is None:
        now = time.monotonic()

    refill_rate = max_per_minute / 60.0
    tokens, last = bucket.get(key, (float(max_per_minute), now))
    tokens = min(float(max_per_minute), tokens + (now - last) * refill_rate)

    if tokens >= 1.0:
        bucket[key] = (tokens - 1.0, now)
        return True, 0.0

    bucket[key] = (tokens, now)
    return False, (1.0 - tokens) / refill_rate


def evict_stale(bucket: Bucket, now: float, max_age: float = _EVICT_AGE) -> int:
    """Drop entries idle for longer than *max_age*. Returns how many were removed."""
    stale = [key for key, (_, last) in bucket.items() if now - last > max_age]
    for key in stale:
        del bucket[key]
    return len(stale)


class RateLimiter:
    """Thread-safe holder for the process-wide bucket."""

    def __init__(self, evict_every: int = 100) -> None:
        self.buckets: Bucket = {}
        self._lock = threading.Lock()
        self._calls = 0
        self._evict_every = evict_every

    def hit(self, key: str, max_per_minute: int) -> Tuple[bool, float]:
        with self._lock:
            now = time.monotonic()
            self._calls += 1
            if self._calls % self._evict_every == 0:
                evict_stale(self.buckets, now)
            return check_rate_limit(self.buckets, key, max_per_minute, now)

    def reset(self) -> None:
        with self._lock:
            self.buckets.clear()
            self._calls = 0


rate_limiter = RateLimiter()

# Probes and docs are never throttled.
_EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def _client_key(request: Request) -> str:
    """Bearer token fingerprint when present, else the first forwarded or direct client IP."""
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        digest = hashlib.sha256(authorization[7:].encode()).hexdigest()[:16]
        return f"token:{digest}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, rate limiting, timing, and structured request logging."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        if request.url.path not in _EXEMPT_PATHS:
            key = _client_key(request)
            allowed, retry_after = rate_limiter.hit(key, settings.rate_limit_per_minute)
            if not allowed:
                logger.warning(
                    "Rate limit exceeded",
                    extra={"client": key, "path": request.url.path, "retry_after": round(retry_after, 1)},
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": ErrorCode.RATE_LIMITED.value,
                        "message": "Too many requests",
                        "details": {"retry_after": round(retry_after, 1)},
                    },
                    headers={
                        "Retry-After": str(int(retry_after) + 1),
                        "X-Request-ID": rid,
                    },
                )

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
