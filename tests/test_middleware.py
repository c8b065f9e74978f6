import logging

from pemira.constants import Role
from pemira.ctxkeys import ContextKey
from pemira.middleware import (
    RateLimiter,
    request_logger,
    require_admin,
    require_role,
    require_student,
    require_tps_operator,
)
from pemira.web import Request, Response


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _ok(request):
    return Response(status=200, body=b"ok")


def _req(ip="10.0.0.1:1234", role=None):
    ctx = {} if role is None else {ContextKey.USER_ROLE: role}
    return Request(remote_addr=ip, context=ctx)


def test_burst_then_limited_then_refilled():
    clock = FakeClock()
    handler = RateLimiter(60, 2, clock).limit(_ok)
    statuses = [handler(_req()).status for _ in range(3)]
    assert statuses == [200, 200, 429]
    assert handler(_req()).json()["code"] == "RATE_LIMIT_EXCEEDED"
    clock.now += 1.0
    assert handler(_req()).status == 200


def test_addresses_are_independent():
    handler = RateLimiter(60, 1, FakeClock()).limit(_ok)
    assert handler(_req("a")).status == 200
    assert handler(_req("a")).status == 429
    assert handler(_req("b")).status == 200


def test_idle_visitor_is_forgotten():
    clock = FakeClock()
    handler = RateLimiter(0, 1, clock).limit(_ok)
    assert handler(_req()).status == 200
    assert handler(_req()).status == 429
    clock.now += 200
    assert handler(_req()).status == 200


def test_recent_visitor_is_kept():
    clock = FakeClock()
    handler = RateLimiter(0, 1, clock).limit(_ok)
    handler(_req())
    clock.now += 100
    assert handler(_req()).status == 429


def test_cleanup_reports_removed_visitors():
    clock = FakeClock()
    limiter = RateLimiter(60, 5, clock)
    handler = limiter.limit(_ok)
    handler(_req("a"))
    handler(_req("b"))
    assert limiter.cleanup() == 0
    clock.now += 200
    assert limiter.cleanup() == 2


def test_require_admin_allows_admin():
    assert require_admin()(_ok)(_req(role="ADMIN")).status == 200
    assert require_admin()(_ok)(_req(role=Role.SUPER_ADMIN)).status == 200


def test_require_admin_rejects_student():
    resp = require_admin()(_ok)(_req(role="STUDENT"))
    assert resp.status == 403
    assert resp.json() == {"code": "FORBIDDEN", "message": "Insufficient permissions"}


def test_missing_role_is_forbidden():
    resp = require_student()(_ok)(_req())
    assert resp.status == 403
    assert resp.json()["message"] == "No role found"


def test_unknown_role_is_forbidden():
    resp = require_role(Role.STUDENT)(_ok)(_req(role="GUEST"))
    assert resp.json()["message"] == "No role found"


def test_tps_operator_allows_admin_and_operator():
    mw = require_tps_operator()
    assert mw(_ok)(_req(role="TPS_OPERATOR")).status == 200
    assert mw(_ok)(_req(role="ADMIN")).status == 200
    assert mw(_ok)(_req(role="STUDENT")).status == 403


def test_request_logger_passes_response_and_logs(caplog):
    req = Request(
        method="GET",
        path="/x",
        headers={"user-agent": "pytest"},
        context={ContextKey.USER_ID: 7, ContextKey.USER_ROLE: "ADMIN"},
    )
    with caplog.at_level(logging.INFO, logger="pemira.http"):
        resp = request_logger(_ok)(req)
    assert resp.body == b"ok"
    assert "path=/x" in caplog.text
    assert "status=200" in caplog.text
    assert "user_id=7" in caplog.text
    assert "user_agent=pytest" in caplog.text