"""Live vote monitoring: statistics, snapshots and HTTP handlers."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Protocol

from pemira.web import (
    Handler,
    Request,
    Response,
    bad_request,
    internal_server_error,
    success,
    to_jsonable,
)

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _parse_int64(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


@dataclass
class VoteStats:
    election_id: int
    candidate_id: int
    total_votes: int = 0
    total_votes_online: int = 0
    total_votes_tps: int = 0
    updated_at: datetime | None = None


@dataclass
class ParticipationStats:
    election_id: int
    total_eligible: int = 0
    total_voted: int = 0
    participation_pct: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": self.election_id,
            "total_eligible": self.total_eligible,
            "total_voted": self.total_voted,
            "participation_pct": self.participation_pct,
        }


@dataclass
class TPSStats:
    tps_id: int
    tps_name: str
    total_votes: int = 0
    pending_checkins: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tps_id": self.tps_id,
            "tps_name": self.tps_name,
            "total_votes": self.total_votes,
            "pending_checkins": self.pending_checkins,
        }


@dataclass
class LiveCountSnapshot:
    election_id: int
    timestamp: datetime
    total_votes: int
    participation: ParticipationStats
    candidate_votes: dict[int, int] = field(default_factory=dict)
    tps_stats: list[TPSStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": self.election_id,
            "timestamp": to_jsonable(self.timestamp),
            "total_votes": self.total_votes,
            "participation": self.participation.to_dict(),
            "candidate_votes": {str(k): v for k, v in self.candidate_votes.items()},
            "tps_stats": [s.to_dict() for s in self.tps_stats],
        }


class MonitoringRepository(Protocol):
    def get_vote_stats(self, election_id: int) -> list[VoteStats]: ...

    def get_participation_stats(self, election_id: int) -> ParticipationStats: ...

    def get_tps_stats(self, election_id: int) -> list[TPSStats]: ...

    def get_live_count(self, election_id: int) -> dict[int, int]: ...


class MonitoringService:
    """Combines repository statistics into live-count views."""

    def __init__(self, repo: MonitoringRepository) -> None:
        self.repo = repo

    def get_live_count_snapshot(self, election_id: int) -> LiveCountSnapshot:
        vote_stats = self.repo.get_vote_stats(election_id)
        participation = self.repo.get_participation_stats(election_id)
        tps_stats = self.repo.get_tps_stats(election_id)

        return LiveCountSnapshot(
            election_id=election_id,
            timestamp=datetime.now(timezone.utc),
            total_votes=sum(stat.total_votes for stat in vote_stats),
            participation=participation,
            candidate_votes={stat.candidate_id: stat.total_votes for stat in vote_stats},
            tps_stats=list(tps_stats),
        )

    def get_dashboard_summary(self, election_id: int) -> dict[str, Any]:
        snapshot = self.get_live_count_snapshot(election_id)
        return {
            "total_votes": snapshot.total_votes,
            "total_eligible": snapshot.participation.total_eligible,
            "participation_pct": snapshot.participation.participation_pct,
            "candidate_votes": snapshot.candidate_votes,
            "tps_count": len(snapshot.tps_stats),
            "last_updated": snapshot.timestamp,
        }


class MonitoringHandler:
    """HTTP endpoints for the admin monitoring dashboard."""

    def __init__(self, service: MonitoringService) -> None:
        self.service = service

    def routes(self) -> list[tuple[str, str, Handler]]:
        return [
            ("GET", "/admin/monitoring/summary", self.get_summary),
            ("GET", "/admin/monitoring/live-count/{electionID}", self.get_live_count),
            ("GET", "/admin/monitoring/participation/{electionID}", self.get_participation),
        ]

    def get_summary(self, request: Request) -> Response:
        election_id = _parse_int64(request.query_param("election_id")) or 0
        try:
            summary = self.service.get_dashboard_summary(election_id)
        except Exception:
            _log.exception("failed to fetch monitoring summary")
            return internal_server_error("INTERNAL_ERROR", "Failed to fetch summary")
        return success(HTTPStatus.OK, summary)

    def get_live_count(self, request: Request) -> Response:
        election_id = _parse_int64(request.path_param("electionID"))
        if election_id is None:
            return bad_request("INVALID_REQUEST", "Invalid election ID")
        try:
            snapshot = self.service.get_live_count_snapshot(election_id)
        except Exception:
            _log.exception("failed to fetch live count")
            return internal_server_error("INTERNAL_ERROR", "Failed to fetch live count")
        return success(HTTPStatus.OK, snapshot)

    def get_participation(self, request: Request) -> Response:
        election_id = _parse_int64(request.path_param("electionID"))
        if election_id is None:
            return bad_request("INVALID_REQUEST", "Invalid election ID")
        try:
            participation = self.service.repo.get_participation_stats(election_id)
        except Exception:
            _log.exception("failed to fetch participation")
            return internal_server_error("INTERNAL_ERROR", "Failed to fetch participation")
        return success(HTTPStatus.OK, participation)