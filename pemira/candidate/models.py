"""Candidate domain types, repository contracts and the stats adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Protocol

from pemira.errors import NotFoundError
from pemira.web import to_jsonable


class CandidateNotFoundError(NotFoundError):
    default_message = "candidate not found"


class CandidateStatus(str, Enum):
    """Publication status of a candidate."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


_STATUS_VALUES = frozenset(status.value for status in CandidateStatus)


def is_valid_status(value: object) -> bool:
    """Return True when ``value`` is one of the supported status values."""
    if isinstance(value, CandidateStatus):
        return True
    return isinstance(value, str) and value in _STATUS_VALUES


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object")
    return data


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _opt_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _str_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{key} must be a list of strings")
    return list(value)


@dataclass
class MainProgram:
    title: str = ""
    description: str = ""
    category: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> MainProgram:
        d = _mapping(data, "main program")
        return cls(
            title=_str(d, "title"),
            description=_str(d, "description"),
            category=_str(d, "category"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description, "category": self.category}


@dataclass
class Media:
    video_url: str | None = None
    gallery_photos: list[str] = field(default_factory=list)
    document_manifesto_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Media:
        d = _mapping(data, "media")
        return cls(
            video_url=_opt_str(d, "video_url"),
            gallery_photos=_str_list(d, "gallery_photos"),
            document_manifesto_url=_opt_str(d, "document_manifesto_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.video_url is not None:
            out["video_url"] = self.video_url
        if self.gallery_photos:
            out["gallery_photos"] = list(self.gallery_photos)
        if self.document_manifesto_url is not None:
            out["document_manifesto_url"] = self.document_manifesto_url
        return out


@dataclass
class SocialLink:
    platform: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> SocialLink:
        d = _mapping(data, "social link")
        return cls(platform=_str(d, "platform"), url=_str(d, "url"))

    def to_dict(self) -> dict[str, Any]:
        return {"platform": self.platform, "url": self.url}


@dataclass
class CandidateStats:
    total_votes: int = 0
    percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"total_votes": self.total_votes, "percentage": self.percentage}


@dataclass
class Candidate:
    """A candidate standing in an election."""

    id: int = 0
    election_id: int = 0
    number: int = 0
    name: str = ""
    photo_url: str = ""
    short_bio: str = ""
    long_bio: str = ""
    tagline: str = ""
    faculty_name: str = ""
    study_program_name: str = ""
    cohort_year: int | None = None
    vision: str = ""
    missions: list[str] = field(default_factory=list)
    main_programs: list[MainProgram] = field(default_factory=list)
    media: Media = field(default_factory=Media)
    social_links: list[SocialLink] = field(default_factory=list)
    status: CandidateStatus = CandidateStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "election_id": self.election_id,
            "number": self.number,
            "name": self.name,
            "photo_url": self.photo_url,
            "short_bio": self.short_bio,
            "long_bio": self.long_bio,
            "tagline": self.tagline,
            "faculty_name": self.faculty_name,
            "study_program_name": self.study_program_name,
        }
        if self.cohort_year is not None:
            out["cohort_year"] = self.cohort_year
        out.update(
            vision=self.vision,
            missions=list(self.missions),
            main_programs=[p.to_dict() for p in self.main_programs],
            media=self.media.to_dict(),
            social_links=[link.to_dict() for link in self.social_links],
            status=to_jsonable(self.status),
            created_at=to_jsonable(self.created_at),
            updated_at=to_jsonable(self.updated_at),
        )
        return out


@dataclass
class CandidateMember:
    id: int = 0
    candidate_id: int = 0
    name: str = ""
    position: str = ""
    photo_url: str = ""


@dataclass
class CreateCandidateRequest:
    election_id: int
    order_number: int
    name: str
    vision_mission: str = ""
    photo_url: str = ""


@dataclass
class UpdateCandidateRequest:
    name: str = ""
    vision_mission: str = ""
    photo_url: str = ""


@dataclass
class Filter:
    """Query filters for listing candidates."""

    status: CandidateStatus | None = None
    search: str = ""
    limit: int = 0
    offset: int = 0


class CandidateRepository(Protocol):
    """Candidate storage. Lookups of unknown candidates raise CandidateNotFoundError."""

    def list_by_election(self, election_id: int, filter: Filter) -> tuple[list[Candidate], int]: ...

    def get_by_id(self, election_id: int, candidate_id: int) -> Candidate: ...

    def create(self, candidate: Candidate) -> Candidate: ...

    def update(self, election_id: int, candidate_id: int, candidate: Candidate) -> Candidate: ...

    def delete(self, election_id: int, candidate_id: int) -> None: ...

    def update_status(self, election_id: int, candidate_id: int, status: CandidateStatus) -> None: ...

    def check_number_exists(
        self, election_id: int, number: int, exclude_candidate_id: int | None
    ) -> bool: ...


class StatsProvider(Protocol):
    def get_candidate_stats(self, election_id: int) -> dict[int, CandidateStats]: ...


class AnalyticsRepository(Protocol):
    def get_candidate_vote_stats(self, election_id: int) -> dict[int, CandidateStats]: ...


class AnalyticsStatsAdapter:
    """Presents an analytics repository as a stats provider."""

    def __init__(self, analytics: AnalyticsRepository) -> None:
        self._analytics = analytics

    def get_candidate_stats(self, election_id: int) -> dict[int, CandidateStats]:
        return self._analytics.get_candidate_vote_stats(election_id)