"""Rate limiting middleware for the Lesbot API

All classroom users share one Gemini API key, so requests are limited per
client IP to keep a single browser tab from exhausting the provider quota.

- Forwarded headers are only trusted behind a configured proxy or in development
- TTLCache buckets bound memory use as new IPs are seen
"""

from __future__ import annotations

import ipaddress
import secrets
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from lesbot.config import (
    RATE_LIMIT_MAX_IPS,
    RATE_LIMIT_RPH,
    RATE_LIMIT_RPM,
    RATE_LIMIT_TRUST_PROXY,
    is_development,
)
from lesbot.observability.telemetry import log_event

EXEMPT_PATHS = frozenset({"/health", "/"})

MAX_IDLE_SECONDS = 7200


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP sliding window limits (default 60 req/min, 1000 req/hour).

    State is in-process; every worker keeps its own buckets.
    """

    def __init__(
        self,
        app: Any,
        requests_per_minute: int = RATE_LIMIT_RPM,
        requests_per_hour: int = RATE_LIMIT_RPH,
        trust_proxy: bool | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.trust_proxy = (
            trust_proxy if trust_proxy is not None else RATE_LIMIT_TRUST_PROXY or is_development()
        )

        # {ip: [timestamp, ...]}, evicted after ttl seconds without writes
        self.minute_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=120
        )
        self.hour_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=MAX_IDLE_SECONDS
        )

    @staticmethod
    def _is_valid_ip(ip_str: str) -> bool:
        try:
            ipaddress.ip_address(ip_str)
            return True
        except ValueError:
            return False

    def _get_client_ip(self, request: Request) -> str:
        """Client IP, taken from X-Forwarded-For / X-Real-IP only when trusted.

        Malformed header values fall back to the socket address.
        """
        if self.trust_proxy:
            forwarded = request.headers.get("X-Forwarded-For")
            if forwarded:
                # First entry is the original client in a proxy chain
                ip = forwarded.split(",")[0].strip()
                if self._is_valid_ip(ip):
                    return ip

            real_ip = request.headers.get("X-Real-IP")
            if real_ip and self._is_valid_ip(real_ip.strip()):
                return real_ip.strip()

        return request.client.host if request.client else "unknown"

    @staticmethod
    def _clean_old_requests(bucket: list[float], max_age_seconds: int) -> list[float]:
        now = time.time()
        return [ts for ts in bucket if now - ts < max_age_seconds]

    def _cleanup_old_buckets(self) -> None:
        """Drop IPs with no request in the last two hours."""
        now = time.time()
        idle = [
            ip
            for ip, bucket in list(self.minute_buckets.items())
            if not bucket or now - max(bucket) > MAX_IDLE_SECONDS
        ]
        for ip in idle:
            self.minute_buckets.pop(ip, None)
            self.hour_buckets.pop(ip, None)

    def _limited(self, client_ip: str, window: str, count: int, limit: int, retry_after: int):
        log_event("api.rate_limit.request_exceeded", ip=client_ip, limit=window, count=count)
        return JSONResponse(
            status_code=429,
            content={
                "error": f"Rate limit exceeded. Maximum {limit} requests per {window}.",
                "retry_after": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        if secrets.randbelow(100) == 0:
            self._cleanup_old_buckets()

        client_ip = self._get_client_ip(request)
        now = time.time()

        minute_bucket = self._clean_old_requests(self.minute_buckets.get(client_ip, []), 60)
        hour_bucket = self._clean_old_requests(self.hour_buckets.get(client_ip, []), 3600)

        minute_requests = len(minute_bucket)
        if minute_requests >= self.requests_per_minute:
            self.minute_buckets[client_ip] = minute_bucket
            return self._limited(client_ip, "minute", minute_requests, self.requests_per_minute, 60)

        hour_requests = len(hour_bucket)
        if hour_requests >= self.requests_per_hour:
            self.hour_buckets[client_ip] = hour_bucket
            return self._limited(client_ip, "hour", hour_requests, self.requests_per_hour, 3600)

        minute_bucket.append(now)
        hour_bucket.append(now)
        self.minute_buckets[client_ip] = minute_bucket
        self.hour_buckets[client_ip] = hour_bucket

        response = await call_next(request)

        response.headers["X-RateLimit-Limit-Minute"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining-Minute"] = str(
            self.requests_per_minute - minute_requests - 1
        )
        response.headers["X-RateLimit-Limit-Hour"] = str(self.requests_per_hour)
        response.headers["X-RateLimit-Remaining-Hour"] = str(
            self.requests_per_hour - hour_requests - 1
        )

        return response
