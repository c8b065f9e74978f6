"""Request middleware: rate limiting, role checks and access logging."""

from __future__ import annotations

import functools
import logging
import threading
import time
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable

from pemira.constants import Role
from pemira.ctxkeys import get_user_id, get_user_role
from pemira.web import Handler, Request, Response, error, forbidden

Middleware = Callable[[Handler], Handler]

_CLEANUP_INTERVAL = 60.0
_VISITOR_TTL = 180.0

_access_log = logging.getLogger("pemira.http")


@dataclass
class _Visitor:
    last_seen: float
    tokens: int


class RateLimiter:
    """Per-address token bucket limiter."""

    def __init__(
        self,
        requests_per_minute: int,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rate = requests_per_minute
        self._burst = burst
        self._clock = clock
        self._visitors: dict[str, _Visitor] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def cleanup(self) -> int:
        """Forget visitors idle for more than three minutes; return how many were removed."""
        with self._lock:
            return self._cleanup_locked(self._clock())

    def _cleanup_locked(self, now: float) -> int:
        stale = [ip for ip, v in self._visitors.items() if now - v.last_seen > _VISITOR_TTL]
        for ip in stale:
            del self._visitors[ip]
        self._last_cleanup = now
        return len(stale)

    def _take(self, ip: str) -> bool:
        with self._lock:
            now = self._clock()
            if now - self._last_cleanup >= _CLEANUP_INTERVAL:
                self._cleanup_locked(now)
            visitor = self._visitors.get(ip)
            if visitor is None:
                visitor = _Visitor(last_seen=now, tokens=self._burst)
                self._visitors[ip] = visitor
            refill = int((now - visitor.last_seen) * self._rate / 60.0)
            visitor.tokens = min(visitor.tokens + refill, self._burst)
            visitor.last_seen = now
            if visitor.tokens <= 0:
                return False
            visitor.tokens -= 1
            return True

    def limit(self, handler: Handler) -> Handler:
        @functools.wraps(handler)
        def wrapped(request: Request) -> Response:
            if not self._take(request.remote_addr):
                return error(HTTPStatus.TOO_MANY_REQUESTS, "RATE_LIMIT_EXCEEDED", "Too many requests")
            return handler(request)

        return wrapped


def _parse_role(raw: str | None) -> Role | None:
    if raw is None:
        return None
    try:
        return Role(raw)
    except ValueError:
        return None


def require_role(*roles: Role) -> Middleware:
    """Allow only requests whose context role is one of ``roles``."""
    allowed = frozenset(Role(r) for r in roles)

    def middleware(handler: Handler) -> Handler:
        @functools.wraps(handler)
        def wrapped(request: Request) -> Response:
            role = _parse_role(get_user_role(request.context))
            if role is None:
                return forbidden("FORBIDDEN", "No role found")
            if role in allowed:
                return handler(request)
            return forbidden("FORBIDDEN", "Insufficient permissions")

        return wrapped

    return middleware


def require_admin() -> Middleware:
    return require_role(Role.ADMIN, Role.SUPER_ADMIN)


def require_tps_operator() -> Middleware:
    return require_role(Role.TPS_OPERATOR, Role.ADMIN, Role.SUPER_ADMIN)


def require_student() -> Middleware:
    return require_role(Role.STUDENT)


def _header(request: Request, name: str) -> str:
    wanted = name.lower()
    return next((v for k, v in request.headers.items() if k.lower() == wanted), "")


def request_logger(handler: Handler) -> Handler:
    """Log one line per request with method, path, status, timing and size."""

    @functools.wraps(handler)
    def wrapped(request: Request) -> Response:
        start = time.perf_counter()
        response = handler(request)
        duration_ms = int((time.perf_counter() - start) * 1000)

        fields: dict[str, object] = {
            "method": request.method,
            "path": request.path,
            "status": response.status,
            "duration_ms": duration_ms,
            "size": len(response.body),
            "remote_addr": request.remote_addr,
            "user_agent": _header(request, "User-Agent"),
        }
        user_id = get_user_id(request.context)
        if user_id is not None:
            fields["user_id"] = user_id
        role = get_user_role(request.context)
        if role is not None:
            fields["role"] = role

        _access_log.info(
            "http_request %s",
            " ".join(f"{k}={v}" for k, v in fields.items()),
            extra={"http": fields},
        )
        return response

    return wrapped