"""Voter-roll (DPT) data types and the repository contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Protocol, Sequence

from pemira.web import to_jsonable


@dataclass
class VoterStatusDTO:
    """A voter's eligibility and voting state in one election."""

    is_eligible: bool = False
    has_voted: bool = False
    last_vote_at: datetime | None = None
    last_vote_channel: str | None = None
    last_tps_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"is_eligible": self.is_eligible, "has_voted": self.has_voted}
        if self.last_vote_at is not None:
            out["last_vote_at"] = to_jsonable(self.last_vote_at)
        if self.last_vote_channel is not None:
            out["last_vote_channel"] = self.last_vote_channel
        if self.last_tps_id is not None:
            out["last_tps_id"] = self.last_tps_id
        return out


@dataclass
class VoterWithStatusDTO:
    """A voter together with their status in an election."""

    voter_id: int
    nim: str
    name: str = ""
    faculty_name: str = ""
    study_program_name: str = ""
    cohort_year: int = 0
    email: str = ""
    has_account: bool = False
    status: VoterStatusDTO = field(default_factory=VoterStatusDTO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "voter_id": self.voter_id,
            "nim": self.nim,
            "name": self.name,
            "faculty_name": self.faculty_name,
            "study_program_name": self.study_program_name,
            "cohort_year": self.cohort_year,
            "email": self.email,
            "has_account": self.has_account,
            "status": self.status.to_dict(),
        }


@dataclass
class ListFilter:
    """Filters for listing voters; None and empty strings mean "any"."""

    faculty: str = ""
    study_program: str = ""
    cohort_year: int | None = None
    has_voted: bool | None = None
    eligible: bool | None = None
    search: str = ""
    limit: int = 0
    offset: int = 0


@dataclass
class ImportRow:
    """One voter read from an import file."""

    nim: str
    name: str
    faculty_name: str
    study_program: str
    cohort_year: int
    email: str = ""
    phone: str = ""


@dataclass
class ImportResult:
    """Counts reported after importing voters."""

    total_rows: int = 0
    inserted_voters: int = 0
    updated_voters: int = 0
    created_status: int = 0
    skipped_status: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "inserted_voters": self.inserted_voters,
            "updated_voters": self.updated_voters,
            "created_status": self.created_status,
            "skipped_status": self.skipped_status,
        }


class DptRepository(Protocol):
    """Storage of voters and their per-election status."""

    def import_voters_for_election(
        self, election_id: int, rows: Sequence[ImportRow]
    ) -> ImportResult: ...

    def list_voters_for_election(
        self, election_id: int, filter: ListFilter
    ) -> tuple[list[VoterWithStatusDTO], int]: ...

    def stream_voters_for_election(
        self, election_id: int, filter: ListFilter
    ) -> Iterator[VoterWithStatusDTO]: ...