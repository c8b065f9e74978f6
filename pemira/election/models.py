"""Election domain types and repository contracts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Protocol

from pemira.constants import VotingMode
from pemira.errors import NotFoundError
from pemira.web import to_jsonable


class ElectionNotFoundError(NotFoundError):
    default_message = "election not found"


class VoterStatusNotFoundError(NotFoundError):
    default_message = "voter status not found"


class ElectionStatus(str, Enum):
    DRAFT = "DRAFT"
    REGISTRATION = "REGISTRATION"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    CAMPAIGN = "CAMPAIGN"
    VOTING_OPEN = "VOTING_OPEN"
    VOTING_CLOSED = "VOTING_CLOSED"
    CLOSED = "CLOSED"
    ARCHIVED = "ARCHIVED"


class VoteMethod(str, Enum):
    NONE = "NONE"
    ONLINE = "ONLINE"
    TPS = "TPS"


def _summary_dict(e: Any) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": e.id,
        "year": e.year,
        "name": e.name,
        "slug": e.slug,
        "status": to_jsonable(e.status),
    }
    if e.voting_start_at is not None:
        out["voting_start_at"] = to_jsonable(e.voting_start_at)
    if e.voting_end_at is not None:
        out["voting_end_at"] = to_jsonable(e.voting_end_at)
    out["online_enabled"] = e.online_enabled
    out["tps_enabled"] = e.tps_enabled
    return out


def _full_dict(e: Any) -> dict[str, Any]:
    out = _summary_dict(e)
    out["created_at"] = to_jsonable(e.created_at)
    out["updated_at"] = to_jsonable(e.updated_at)
    return out


@dataclass
class Election:
    id: int
    year: int
    name: str
    slug: str
    status: ElectionStatus
    voting_start_at: datetime | None = None
    voting_end_at: datetime | None = None
    online_enabled: bool = False
    tps_enabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _full_dict(self)


@dataclass
class CurrentElectionDTO:
    id: int
    year: int
    name: str
    slug: str
    status: ElectionStatus
    voting_start_at: datetime | None = None
    voting_end_at: datetime | None = None
    online_enabled: bool = False
    tps_enabled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _summary_dict(self)


@dataclass
class AdminElectionDTO:
    id: int
    year: int
    name: str
    slug: str
    status: ElectionStatus
    voting_start_at: datetime | None = None
    voting_end_at: datetime | None = None
    online_enabled: bool = False
    tps_enabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _full_dict(self)


@dataclass
class AdminElectionListFilter:
    year: int | None = None
    status: ElectionStatus | None = None
    search: str = ""
    limit: int = 0
    offset: int = 0


def _mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError("request body must be an object")
    return data


def _opt_int(data: Mapping[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


def _opt_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _opt_bool(data: Mapping[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


@dataclass
class AdminElectionCreateRequest:
    year: int = 0
    name: str = ""
    slug: str = ""
    online_enabled: bool = False
    tps_enabled: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> AdminElectionCreateRequest:
        d = _mapping(data)
        return cls(
            year=_opt_int(d, "year") or 0,
            name=_opt_str(d, "name") or "",
            slug=_opt_str(d, "slug") or "",
            online_enabled=bool(_opt_bool(d, "online_enabled")),
            tps_enabled=bool(_opt_bool(d, "tps_enabled")),
        )


@dataclass
class AdminElectionUpdateRequest:
    """Partial update; a field left as None is not changed."""

    year: int | None = None
    name: str | None = None
    slug: str | None = None
    online_enabled: bool | None = None
    tps_enabled: bool | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AdminElectionUpdateRequest:
        d = _mapping(data)
        return cls(
            year=_opt_int(d, "year"),
            name=_opt_str(d, "name"),
            slug=_opt_str(d, "slug"),
            online_enabled=_opt_bool(d, "online_enabled"),
            tps_enabled=_opt_bool(d, "tps_enabled"),
        )


@dataclass
class MeStatusDTO:
    election_id: int
    voter_id: int
    eligible: bool = False
    has_voted: bool = False
    method: VoteMethod = VoteMethod.NONE
    preferred_method: str | None = None
    tps_id: int | None = None
    last_vote_at: datetime | None = None
    online_allowed: bool = False
    tps_allowed: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "election_id": self.election_id,
            "voter_id": self.voter_id,
            "eligible": self.eligible,
            "has_voted": self.has_voted,
            "method": to_jsonable(self.method),
        }
        if self.preferred_method is not None:
            out["preferred_method"] = self.preferred_method
        if self.tps_id is not None:
            out["tps_id"] = self.tps_id
        if self.last_vote_at is not None:
            out["last_vote_at"] = to_jsonable(self.last_vote_at)
        out["online_allowed"] = self.online_allowed
        out["tps_allowed"] = self.tps_allowed
        return out


@dataclass
class MeStatusRow:
    """A voter's status row joined with its election's channel settings."""

    election_id: int
    voter_id: int
    is_eligible: bool = False
    has_voted: bool = False
    last_vote_at: datetime | None = None
    last_vote_channel: str | None = None
    last_tps_id: int | None = None
    online_enabled: bool = False
    tps_enabled: bool = False
    preferred_method: str | None = None
    online_allowed: bool = False
    tps_allowed: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> MeStatusRow:
        """Build a row from database columns; a channel is allowed only if the election enables it."""
        online_enabled = bool(record["online_enabled"])
        tps_enabled = bool(record["tps_enabled"])
        return cls(
            election_id=record["election_id"],
            voter_id=record["voter_id"],
            is_eligible=bool(record["is_eligible"]),
            has_voted=bool(record["has_voted"]),
            last_vote_at=record.get("voted_at"),
            last_vote_channel=record.get("voting_method"),
            last_tps_id=record.get("tps_id"),
            online_enabled=online_enabled,
            tps_enabled=tps_enabled,
            preferred_method=record.get("preferred_method"),
            online_allowed=online_enabled and bool(record["online_allowed"]),
            tps_allowed=tps_enabled and bool(record["tps_allowed"]),
        )


class ElectionRepository(Protocol):
    """Read access to elections; unknown ids raise ElectionNotFoundError."""

    def get_current_election(self) -> Election: ...

    def get_by_id(self, election_id: int) -> Election: ...

    def get_voter_status(self, election_id: int, voter_id: int) -> MeStatusRow: ...


class AdminElectionRepository(Protocol):
    def list_elections(self, filter: AdminElectionListFilter) -> tuple[list[AdminElectionDTO], int]: ...

    def get_election_by_id(self, election_id: int) -> AdminElectionDTO: ...

    def create_election(self, req: AdminElectionCreateRequest) -> AdminElectionDTO: ...

    def update_election(self, election_id: int, req: AdminElectionUpdateRequest) -> AdminElectionDTO: ...

    def set_voting_status(
        self,
        election_id: int,
        status: ElectionStatus,
        voting_start_at: datetime | None,
        voting_end_at: datetime | None,
    ) -> AdminElectionDTO: ...


@dataclass
class CreateElectionRequest:
    name: str
    year: int
    voting_mode: VotingMode
    description: str = ""


@dataclass
class UpdateElectionRequest:
    name: str = ""
    description: str = ""
    voting_mode: VotingMode | None = None