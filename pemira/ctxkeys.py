"""Keys for per-request context values and typed accessors."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping


class ContextKey(str, Enum):
    USER_ID = "user_id"
    USER_ROLE = "user_role"
    VOTER_ID = "voter_id"
    REQUEST_ID = "request_id"
    ELECTION_ID = "election_id"


def _as_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def get_voter_id(ctx: Mapping[Any, Any]) -> int | None:
    """Return the voter id, falling back to the user id when no voter id is set."""
    value = ctx.get(ContextKey.VOTER_ID)
    if value is None:
        value = ctx.get(ContextKey.USER_ID)
    return _as_int(value)


def get_user_id(ctx: Mapping[Any, Any]) -> int | None:
    return _as_int(ctx.get(ContextKey.USER_ID))


def get_user_role(ctx: Mapping[Any, Any]) -> str | None:
    value = ctx.get(ContextKey.USER_ROLE)
    return value if isinstance(value, str) else None