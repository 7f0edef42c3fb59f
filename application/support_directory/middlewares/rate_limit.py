"""
Per-IP request throttling for the credential and redirect endpoints.

Counters are fixed windows kept in process memory; each worker enforces its
own limits.
"""
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from support_directory.config.settings import DirectoryConfigs
from support_directory.logging.utils import get_app_logger

logger = get_app_logger(__name__)
configs = DirectoryConfigs()


@dataclass(frozen=True)
class RateLimitRule:
    name: str
    method: str
    path: str
    limit: int
    period: int
    message: str

    def matches(self, method: str, path: str) -> bool:
        return method == self.method and path.rstrip("/") == self.path


def default_rules() -> list[RateLimitRule]:
    auth_message = "Too many requests from this IP, please try again later."
    limit, period = configs.AUTH_RATE_LIMIT, configs.AUTH_RATE_LIMIT_WINDOW_SECONDS
    return [
        RateLimitRule("login", "POST", "/auth/login", limit, period, auth_message),
        RateLimitRule("forgot_password", "POST", "/auth/forgot-password", limit, period, auth_message),
        RateLimitRule("reset_password", "POST", "/auth/reset-password", limit, period, auth_message),
        RateLimitRule("create_sub_admin", "POST", "/admins", limit, period, auth_message),
        RateLimitRule(
            "redirect",
            "GET",
            "/search/redirect",
            configs.REDIRECT_RATE_LIMIT,
            configs.REDIRECT_RATE_LIMIT_WINDOW_SECONDS,
            "Too many redirect requests, please slow down.",
        ),
    ]


@dataclass
class _Window:
    count: int
    resets_at: float


class RateLimiter:
    """Fixed-window counters keyed by rule and client; closed windows are swept lazily."""

    def __init__(self, rules: Optional[list[RateLimitRule]] = None, clock: Callable[[], float] = time.monotonic):
        self.rules = rules if rules is not None else default_rules()
        self.clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def rule_for(self, method: str, path: str) -> Optional[RateLimitRule]:
        for rule in self.rules:
            if rule.matches(method, path):
                return rule
        return None

    def hit(self, rule: RateLimitRule, client_id: str) -> tuple[bool, int, float]:
        """Count one request; returns (allowed, remaining, seconds until reset)."""
        now = self.clock()
        key = f"{rule.name}:{client_id}"
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)
            if window is None or window.resets_at <= now:
                window = self._windows[key] = _Window(count=0, resets_at=now + rule.period)
            window.count += 1
            return window.count <= rule.limit, max(0, rule.limit - window.count), window.resets_at - now

    def _sweep(self, now: float):
        if now < self._next_sweep:
            return
        self._next_sweep = now + min((rule.period for rule in self.rules), default=60)
        for key in [k for k, w in self._windows.items() if w.resets_at <= now]:
            del self._windows[key]

    def reset(self):
        with self._lock:
            self._windows.clear()
            self._next_sweep = 0.0


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        rule = self.limiter.rule_for(request.method, request.url.path)
        if rule is None:
            return await call_next(request)

        client_id = client_address(request)
        allowed, remaining, reset_in = self.limiter.hit(rule, client_id)
        headers = {
            "RateLimit-Limit": str(rule.limit),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(math.ceil(reset_in)),
        }
        if not allowed:
            logger.warning(f"rate_limited | rule={rule.name} client={client_id} path={request.url.path}")
            headers["Retry-After"] = headers["RateLimit-Reset"]
            return JSONResponse(status_code=429, content={"success": False, "message": rule.message}, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
