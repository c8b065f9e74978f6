"""Minimal request/response types and JSON response helpers."""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from http import HTTPStatus
from typing import Any, Callable, Mapping

_log = logging.getLogger(__name__)


@dataclass
class Request:
    """An incoming HTTP request as seen by handlers."""

    method: str = "GET"
    path: str = "/"
    path_params: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    files: dict[str, bytes] = field(default_factory=dict)
    context: dict[Any, Any] = field(default_factory=dict)
    remote_addr: str = ""

    def path_param(self, name: str) -> str:
        return self.path_params.get(name, "")

    def query_param(self, name: str) -> str:
        return self.query.get(name, "")


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        return json.loads(self.body)


Handler = Callable[[Request], Response]


def _format_time(value: datetime) -> str:
    text = value.isoformat()
    if value.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums, datetimes and containers into JSON-ready values."""
    if isinstance(value, Enum):
        return to_jsonable(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, date):
        return value.isoformat()
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict) and not isinstance(value, type):
        return to_jsonable(to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {_json_key(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    raise TypeError(f"cannot encode {type(value).__name__} as JSON")


def _json_key(key: Any) -> str:
    if isinstance(key, Enum):
        key = key.value
    return key if isinstance(key, str) else str(key)


def json_response(status: int, data: Any) -> Response:
    body = json.dumps(to_jsonable(data), ensure_ascii=False) + "\n"
    return Response(
        status=int(status),
        body=body.encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


def success(status: int, data: Any) -> Response:
    return json_response(status, {"data": data})


def error(status: int, code: str, message: str, details: Any = None) -> Response:
    if status >= 500:
        _log.error("Error response: status=%d, code=%s, message=%s", int(status), code, message)
    payload: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return json_response(status, payload)


def bad_request(code: str, message: str) -> Response:
    return error(HTTPStatus.BAD_REQUEST, code, message)


def unauthorized(code: str, message: str) -> Response:
    return error(HTTPStatus.UNAUTHORIZED, code, message)


def forbidden(code: str, message: str) -> Response:
    return error(HTTPStatus.FORBIDDEN, code, message)


def not_found(code: str, message: str) -> Response:
    return error(HTTPStatus.NOT_FOUND, code, message)


def internal_server_error(code: str, message: str) -> Response:
    return error(HTTPStatus.INTERNAL_SERVER_ERROR, code, message)


def conflict(code: str, message: str) -> Response:
    return error(HTTPStatus.CONFLICT, code, message)


def unprocessable_entity(code: str, message: str) -> Response:
    return error(HTTPStatus.UNPROCESSABLE_ENTITY, code, message)