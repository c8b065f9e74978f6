"""Election business logic for voters and administrators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from pemira.election.models import (
    AdminElectionCreateRequest,
    AdminElectionDTO,
    AdminElectionListFilter,
    AdminElectionRepository,
    AdminElectionUpdateRequest,
    CurrentElectionDTO,
    ElectionRepository,
    ElectionStatus,
    MeStatusDTO,
    VoteMethod,
    VoterStatusNotFoundError,
)
from pemira.errors import BadRequestError, ForbiddenError
from pemira.pagination import Pagination, paginate

_ADMIN_DEFAULT_LIMIT = 20


class ElectionAlreadyOpenError(BadRequestError):
    default_message = "election already open for voting"


class ElectionNotInOpenStateError(BadRequestError):
    default_message = "election is not in voting-open state"


class InvalidStatusChangeError(BadRequestError):
    default_message = "invalid election status change"


class VoterMappingMissingError(ForbiddenError):
    default_message = "voter mapping missing for user"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _method_from(value: str | None) -> VoteMethod | None:
    if value == VoteMethod.ONLINE.value:
        return VoteMethod.ONLINE
    if value == VoteMethod.TPS.value:
        return VoteMethod.TPS
    return None


class ElectionService:
    """Voter-facing election queries."""

    def __init__(self, repo: ElectionRepository) -> None:
        self._repo = repo

    def get_current_election(self) -> CurrentElectionDTO:
        """Return the election currently open for voting."""
        e = self._repo.get_current_election()
        return CurrentElectionDTO(
            id=e.id,
            year=e.year,
            name=e.name,
            slug=e.slug,
            status=e.status,
            voting_start_at=e.voting_start_at,
            voting_end_at=e.voting_end_at,
            online_enabled=e.online_enabled,
            tps_enabled=e.tps_enabled,
        )

    def get_me_status(self, voter_id: int | None, election_id: int) -> MeStatusDTO:
        """Return the voting status of ``voter_id`` in an election."""
        if voter_id is None:
            raise VoterMappingMissingError()

        self._repo.get_by_id(election_id)

        try:
            row = self._repo.get_voter_status(election_id, voter_id)
        except VoterStatusNotFoundError:
            return MeStatusDTO(election_id=election_id, voter_id=voter_id)

        if row.last_vote_channel is not None:
            method = _method_from(row.last_vote_channel) or VoteMethod.NONE
        else:
            method = _method_from(row.preferred_method) or VoteMethod.NONE

        return MeStatusDTO(
            election_id=row.election_id,
            voter_id=row.voter_id,
            eligible=row.is_eligible,
            has_voted=row.has_voted,
            method=method,
            preferred_method=row.preferred_method,
            tps_id=row.last_tps_id,
            last_vote_at=row.last_vote_at,
            online_allowed=row.online_allowed,
            tps_allowed=row.tps_allowed,
        )


class AdminElectionService:
    """Administrator election management."""

    def __init__(
        self,
        repo: AdminElectionRepository,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._repo = repo
        self._clock = clock

    def list(
        self, filter: AdminElectionListFilter, page: int, limit: int
    ) -> tuple[list[AdminElectionDTO], Pagination]:
        page = page if page > 0 else 1
        limit = limit if limit > 0 else _ADMIN_DEFAULT_LIMIT
        filter.limit = limit
        filter.offset = (page - 1) * limit
        items, total = self._repo.list_elections(filter)
        return items, paginate(page, limit, total)

    def create(self, req: AdminElectionCreateRequest) -> AdminElectionDTO:
        return self._repo.create_election(req)

    def get(self, election_id: int) -> AdminElectionDTO:
        return self._repo.get_election_by_id(election_id)

    def update(self, election_id: int, req: AdminElectionUpdateRequest) -> AdminElectionDTO:
        return self._repo.update_election(election_id, req)

    def open_voting(self, election_id: int) -> AdminElectionDTO:
        """Open voting, stamping the start time unless one is already set."""
        e = self._repo.get_election_by_id(election_id)
        if e.status == ElectionStatus.VOTING_OPEN:
            raise ElectionAlreadyOpenError()
        if e.status == ElectionStatus.ARCHIVED:
            raise InvalidStatusChangeError()
        start_at = e.voting_start_at if e.voting_start_at is not None else self._clock()
        return self._repo.set_voting_status(election_id, ElectionStatus.VOTING_OPEN, start_at, None)

    def close_voting(self, election_id: int) -> AdminElectionDTO:
        """Close voting, stamping the end time."""
        e = self._repo.get_election_by_id(election_id)
        if e.status != ElectionStatus.VOTING_OPEN:
            raise ElectionNotInOpenStateError()
        return self._repo.set_voting_status(
            election_id, ElectionStatus.VOTING_CLOSED, None, self._clock()
        )