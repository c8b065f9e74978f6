"""Candidate business logic for the public and admin views."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from pemira.candidate.models import (
    Candidate,
    CandidateRepository,
    CandidateStats,
    CandidateStatus,
    Filter,
    MainProgram,
    Media,
    SocialLink,
    StatsProvider,
    is_valid_status,
)
from pemira.election.models import ElectionNotFoundError as _BaseElectionNotFoundError
from pemira.errors import BadRequestError, ConflictError, PemiraError
from pemira.pagination import Pagination, paginate
from pemira.web import to_jsonable

_log = logging.getLogger(__name__)

_PUBLIC_DEFAULT_LIMIT = 10
_ADMIN_DEFAULT_LIMIT = 20


class CandidateNotPublishedError(PemiraError):
    default_message = "candidate not published"


class ElectionNotFoundError(_BaseElectionNotFoundError):
    default_message = "election not found"


class CandidateNumberTakenError(ConflictError):
    default_message = "candidate number already used"


class CandidateStatusInvalidError(BadRequestError):
    default_message = "candidate status invalid for this action"


def _status_text(status: Any) -> str:
    return str(to_jsonable(status))


@dataclass
class CandidateListItemDTO:
    """A candidate as shown in a list."""

    id: int
    election_id: int
    number: int
    name: str
    photo_url: str
    short_bio: str
    tagline: str
    faculty_name: str
    study_program_name: str
    status: str
    stats: CandidateStats = field(default_factory=CandidateStats)

    @classmethod
    def _from_candidate(cls, c: Candidate, stats: CandidateStats) -> CandidateListItemDTO:
        return cls(
            id=c.id,
            election_id=c.election_id,
            number=c.number,
            name=c.name,
            photo_url=c.photo_url,
            short_bio=c.short_bio,
            tagline=c.tagline,
            faculty_name=c.faculty_name,
            study_program_name=c.study_program_name,
            status=_status_text(c.status),
            stats=stats,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "election_id": self.election_id,
            "number": self.number,
            "name": self.name,
            "photo_url": self.photo_url,
            "short_bio": self.short_bio,
            "tagline": self.tagline,
            "faculty_name": self.faculty_name,
            "study_program_name": self.study_program_name,
            "status": self.status,
            "stats": self.stats.to_dict(),
        }


@dataclass
class CandidateDetailDTO:
    """A candidate with all its details and vote statistics."""

    id: int
    election_id: int
    number: int
    name: str
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
    status: str = ""
    stats: CandidateStats = field(default_factory=CandidateStats)

    @classmethod
    def _from_candidate(cls, c: Candidate, stats: CandidateStats) -> CandidateDetailDTO:
        return cls(
            id=c.id,
            election_id=c.election_id,
            number=c.number,
            name=c.name,
            photo_url=c.photo_url,
            short_bio=c.short_bio,
            long_bio=c.long_bio,
            tagline=c.tagline,
            faculty_name=c.faculty_name,
            study_program_name=c.study_program_name,
            cohort_year=c.cohort_year,
            vision=c.vision,
            missions=list(c.missions),
            main_programs=list(c.main_programs),
            media=c.media,
            social_links=list(c.social_links),
            status=_status_text(c.status),
            stats=stats,
        )

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
            status=self.status,
            stats=self.stats.to_dict(),
        )
        return out


def _body(data: Any) -> Mapping[str, Any]:
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


def _opt_list(data: Mapping[str, Any], key: str) -> list[Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return value


def _opt_missions(data: Mapping[str, Any]) -> list[str] | None:
    items = _opt_list(data, "missions")
    if items is None:
        return None
    if not all(isinstance(item, str) for item in items):
        raise ValueError("missions must be a list of strings")
    return list(items)


def _opt_programs(data: Mapping[str, Any]) -> list[MainProgram] | None:
    items = _opt_list(data, "main_programs")
    return None if items is None else [MainProgram.from_dict(item) for item in items]


def _opt_links(data: Mapping[str, Any]) -> list[SocialLink] | None:
    items = _opt_list(data, "social_links")
    return None if items is None else [SocialLink.from_dict(item) for item in items]


def _opt_media(data: Mapping[str, Any]) -> Media | None:
    value = data.get("media")
    return None if value is None else Media.from_dict(value)


@dataclass
class AdminCreateCandidateRequest:
    """Payload for creating a candidate; an empty status means PENDING."""

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
    status: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> AdminCreateCandidateRequest:
        d = _body(data)
        return cls(
            number=_opt_int(d, "number") or 0,
            name=_opt_str(d, "name") or "",
            photo_url=_opt_str(d, "photo_url") or "",
            short_bio=_opt_str(d, "short_bio") or "",
            long_bio=_opt_str(d, "long_bio") or "",
            tagline=_opt_str(d, "tagline") or "",
            faculty_name=_opt_str(d, "faculty_name") or "",
            study_program_name=_opt_str(d, "study_program_name") or "",
            cohort_year=_opt_int(d, "cohort_year"),
            vision=_opt_str(d, "vision") or "",
            missions=_opt_missions(d) or [],
            main_programs=_opt_programs(d) or [],
            media=_opt_media(d) or Media(),
            social_links=_opt_links(d) or [],
            status=_opt_str(d, "status") or "",
        )


@dataclass
class AdminUpdateCandidateRequest:
    """Partial update; a field left as None is not changed."""

    number: int | None = None
    name: str | None = None
    photo_url: str | None = None
    short_bio: str | None = None
    long_bio: str | None = None
    tagline: str | None = None
    faculty_name: str | None = None
    study_program_name: str | None = None
    cohort_year: int | None = None
    vision: str | None = None
    missions: list[str] | None = None
    main_programs: list[MainProgram] | None = None
    media: Media | None = None
    social_links: list[SocialLink] | None = None
    status: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AdminUpdateCandidateRequest:
        d = _body(data)
        return cls(
            number=_opt_int(d, "number"),
            name=_opt_str(d, "name"),
            photo_url=_opt_str(d, "photo_url"),
            short_bio=_opt_str(d, "short_bio"),
            long_bio=_opt_str(d, "long_bio"),
            tagline=_opt_str(d, "tagline"),
            faculty_name=_opt_str(d, "faculty_name"),
            study_program_name=_opt_str(d, "study_program_name"),
            cohort_year=_opt_int(d, "cohort_year"),
            vision=_opt_str(d, "vision"),
            missions=_opt_missions(d),
            main_programs=_opt_programs(d),
            media=_opt_media(d),
            social_links=_opt_links(d),
            status=_opt_str(d, "status"),
        )


_UPDATABLE_FIELDS = (
    "number",
    "name",
    "photo_url",
    "short_bio",
    "long_bio",
    "tagline",
    "faculty_name",
    "study_program_name",
    "cohort_year",
    "vision",
    "missions",
    "main_programs",
    "media",
    "social_links",
)


def _checked_status(value: Any) -> CandidateStatus:
    if not is_valid_status(value):
        raise CandidateStatusInvalidError()
    return CandidateStatus(value)


class CandidateService:
    """Candidate operations for students and administrators."""

    def __init__(self, repo: CandidateRepository, stats: StatsProvider) -> None:
        self._repo = repo
        self._stats = stats

    def _stats_map(self, election_id: int) -> dict[int, CandidateStats]:
        try:
            return self._stats.get_candidate_stats(election_id) or {}
        except Exception:
            _log.warning("candidate stats unavailable for election %s", election_id, exc_info=True)
            return {}

    def _detail(self, c: Candidate) -> CandidateDetailDTO:
        stats = self._stats_map(c.election_id if c.election_id else 0)
        return CandidateDetailDTO._from_candidate(c, stats.get(c.id, CandidateStats()))

    def _detail_for(self, election_id: int, c: Candidate) -> CandidateDetailDTO:
        stats = self._stats_map(election_id)
        return CandidateDetailDTO._from_candidate(c, stats.get(c.id, CandidateStats()))

    def list_public_candidates(
        self, election_id: int, search: str, page: int, limit: int
    ) -> tuple[list[CandidateListItemDTO], Pagination]:
        """List approved candidates of an election."""
        page = page if page > 0 else 1
        limit = limit if limit > 0 else _PUBLIC_DEFAULT_LIMIT
        flt = Filter(
            status=CandidateStatus.APPROVED,
            search=search,
            limit=limit,
            offset=(page - 1) * limit,
        )
        candidates, total = self._repo.list_by_election(election_id, flt)
        stats = self._stats_map(election_id)
        items = [
            CandidateListItemDTO._from_candidate(c, stats.get(c.id, CandidateStats()))
            for c in candidates
        ]
        return items, paginate(page, limit, total)

    def get_public_candidate_detail(self, election_id: int, candidate_id: int) -> CandidateDetailDTO:
        """Return an approved candidate; others raise CandidateNotPublishedError."""
        c = self._repo.get_by_id(election_id, candidate_id)
        if c.status != CandidateStatus.APPROVED:
            raise CandidateNotPublishedError()
        return self._detail_for(election_id, c)

    def admin_list_candidates(
        self,
        election_id: int,
        search: str,
        status: str | CandidateStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[CandidateDetailDTO], Pagination]:
        """List candidates of any status, optionally filtered by one."""
        wanted = None if status is None else _checked_status(status)
        page = page if page > 0 else 1
        limit = limit if limit > 0 else _ADMIN_DEFAULT_LIMIT
        flt = Filter(status=wanted, search=search, limit=limit, offset=(page - 1) * limit)
        try:
            candidates, total = self._repo.list_by_election(election_id, flt)
        except Exception:
            _log.exception("admin_list_candidates: list_by_election failed")
            raise
        stats = self._stats_map(election_id)
        items = [
            CandidateDetailDTO._from_candidate(c, stats.get(c.id, CandidateStats()))
            for c in candidates
        ]
        return items, paginate(page, limit, total)

    def admin_create_candidate(
        self, election_id: int, req: AdminCreateCandidateRequest
    ) -> CandidateDetailDTO:
        status = _checked_status(req.status or CandidateStatus.PENDING)
        if self._repo.check_number_exists(election_id, req.number, None):
            raise CandidateNumberTakenError()
        candidate = Candidate(
            election_id=election_id,
            number=req.number,
            name=req.name,
            photo_url=req.photo_url,
            short_bio=req.short_bio,
            long_bio=req.long_bio,
            tagline=req.tagline,
            faculty_name=req.faculty_name,
            study_program_name=req.study_program_name,
            cohort_year=req.cohort_year,
            vision=req.vision,
            missions=list(req.missions),
            main_programs=list(req.main_programs),
            media=req.media,
            social_links=list(req.social_links),
            status=status,
        )
        created = self._repo.create(candidate)
        return self._detail_for(election_id, created)

    def admin_get_candidate(self, election_id: int, candidate_id: int) -> CandidateDetailDTO:
        c = self._repo.get_by_id(election_id, candidate_id)
        return self._detail_for(election_id, c)

    def admin_update_candidate(
        self, election_id: int, candidate_id: int, req: AdminUpdateCandidateRequest
    ) -> CandidateDetailDTO:
        existing = self._repo.get_by_id(election_id, candidate_id)

        if req.number is not None and req.number != existing.number:
            if self._repo.check_number_exists(election_id, req.number, candidate_id):
                raise CandidateNumberTakenError()

        changes: dict[str, Any] = {
            name: getattr(req, name)
            for name in _UPDATABLE_FIELDS
            if getattr(req, name) is not None
        }
        if req.status is not None:
            changes["status"] = _checked_status(req.status)

        candidate = dataclasses.replace(existing, **changes)
        updated = self._repo.update(election_id, candidate_id, candidate)
        return self._detail_for(election_id, updated)

    def admin_delete_candidate(self, election_id: int, candidate_id: int) -> None:
        self._repo.delete(election_id, candidate_id)

    def admin_publish_candidate(self, election_id: int, candidate_id: int) -> CandidateDetailDTO:
        self._repo.update_status(election_id, candidate_id, CandidateStatus.APPROVED)
        return self.admin_get_candidate(election_id, candidate_id)

    def admin_unpublish_candidate(self, election_id: int, candidate_id: int) -> CandidateDetailDTO:
        self._repo.update_status(election_id, candidate_id, CandidateStatus.PENDING)
        return self.admin_get_candidate(election_id, candidate_id)