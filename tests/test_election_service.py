from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

import pytest

from pemira.election.models import (
    AdminElectionCreateRequest,
    AdminElectionDTO,
    AdminElectionListFilter,
    AdminElectionUpdateRequest,
    Election,
    ElectionNotFoundError,
    ElectionStatus,
    MeStatusRow,
    VoteMethod,
    VoterStatusNotFoundError,
)
from pemira.election.service import (
    AdminElectionService,
    ElectionAlreadyOpenError,
    ElectionNotInOpenStateError,
    ElectionService,
    InvalidStatusChangeError,
    VoterMappingMissingError,
)

NOW = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
EARLIER = datetime(2024, 4, 1, 8, 0, tzinfo=timezone.utc)


class FakeElectionRepo:
    def __init__(self):
        self.elections: dict[int, Election] = {}
        self.statuses: dict[tuple[int, int], MeStatusRow] = {}

    def get_current_election(self):
        for e in self.elections.values():
            if e.status == ElectionStatus.VOTING_OPEN:
                return e
        raise ElectionNotFoundError()

    def get_by_id(self, election_id):
        try:
            return self.elections[election_id]
        except KeyError:
            raise ElectionNotFoundError() from None

    def get_voter_status(self, election_id, voter_id):
        try:
            return self.statuses[(election_id, voter_id)]
        except KeyError:
            raise VoterStatusNotFoundError() from None


class FakeAdminRepo:
    def __init__(self):
        self.items: dict[int, AdminElectionDTO] = {}
        self.last_filter = None
        self.total = 0
        self.next_id = 1

    def list_elections(self, filter):
        self.last_filter = filter
        return list(self.items.values()), self.total

    def get_election_by_id(self, election_id):
        try:
            return self.items[election_id]
        except KeyError:
            raise ElectionNotFoundError() from None

    def create_election(self, req):
        dto = AdminElectionDTO(
            id=self.next_id,
            year=req.year,
            name=req.name,
            slug=req.slug,
            status=ElectionStatus.DRAFT,
            online_enabled=req.online_enabled,
            tps_enabled=req.tps_enabled,
        )
        self.items[dto.id] = dto
        self.next_id += 1
        return dto

    def update_election(self, election_id, req):
        current = self.get_election_by_id(election_id)
        changes = {k: v for k, v in dataclasses.asdict(req).items() if v is not None}
        updated = dataclasses.replace(current, **changes)
        self.items[election_id] = updated
        return updated

    def set_voting_status(self, election_id, status, voting_start_at, voting_end_at):
        current = self.get_election_by_id(election_id)
        updated = dataclasses.replace(
            current,
            status=status,
            voting_start_at=voting_start_at or current.voting_start_at,
            voting_end_at=voting_end_at or current.voting_end_at,
        )
        self.items[election_id] = updated
        return updated


def _election(election_id=1, status=ElectionStatus.VOTING_OPEN, **kw):
    return Election(id=election_id, year=2024, name="Pemira", slug="pemira-2024", status=status, **kw)


def _admin(election_id=1, status=ElectionStatus.DRAFT, **kw):
    return AdminElectionDTO(
        id=election_id, year=2024, name="Pemira", slug="pemira-2024", status=status, **kw
    )


# --- ElectionService ---------------------------------------------------------


def test_get_current_election_copies_fields():
    repo = FakeElectionRepo()
    repo.elections[3] = _election(3, voting_start_at=EARLIER, online_enabled=True)
    dto = ElectionService(repo).get_current_election()
    assert dto.id == 3
    assert dto.slug == "pemira-2024"
    assert dto.status == ElectionStatus.VOTING_OPEN
    assert dto.voting_start_at == EARLIER
    assert dto.online_enabled is True
    assert dto.tps_enabled is False


def test_get_current_election_not_found_propagates():
    with pytest.raises(ElectionNotFoundError):
        ElectionService(FakeElectionRepo()).get_current_election()


def test_me_status_requires_voter_mapping():
    repo = FakeElectionRepo()
    repo.elections[1] = _election()
    with pytest.raises(VoterMappingMissingError):
        ElectionService(repo).get_me_status(None, 1)


def test_me_status_unknown_election():
    with pytest.raises(ElectionNotFoundError):
        ElectionService(FakeElectionRepo()).get_me_status(7, 99)


def test_me_status_without_status_row_is_default():
    repo = FakeElectionRepo()
    repo.elections[1] = _election()
    dto = ElectionService(repo).get_me_status(7, 1)
    assert (dto.election_id, dto.voter_id) == (1, 7)
    assert dto.eligible is False
    assert dto.has_voted is False
    assert dto.method == VoteMethod.NONE
    assert dto.online_allowed is False and dto.tps_allowed is False


def test_me_status_method_from_last_channel():
    repo = FakeElectionRepo()
    repo.elections[1] = _election()
    repo.statuses[(1, 7)] = MeStatusRow(
        election_id=1,
        voter_id=7,
        is_eligible=True,
        has_voted=True,
        last_vote_at=NOW,
        last_vote_channel="TPS",
        last_tps_id=4,
        preferred_method="ONLINE",
        online_allowed=True,
    )
    dto = ElectionService(repo).get_me_status(7, 1)
    assert dto.method == VoteMethod.TPS
    assert dto.tps_id == 4
    assert dto.last_vote_at == NOW
    assert dto.preferred_method == "ONLINE"
    assert dto.eligible is True and dto.has_voted is True
    assert dto.online_allowed is True


def test_me_status_method_falls_back_to_preferred():
    repo = FakeElectionRepo()
    repo.elections[1] = _election()
    repo.statuses[(1, 7)] = MeStatusRow(election_id=1, voter_id=7, preferred_method="ONLINE")
    assert ElectionService(repo).get_me_status(7, 1).method == VoteMethod.ONLINE


def test_me_status_unknown_channel_does_not_use_preferred():
    repo = FakeElectionRepo()
    repo.elections[1] = _election()
    repo.statuses[(1, 7)] = MeStatusRow(
        election_id=1, voter_id=7, last_vote_channel="PAPER", preferred_method="TPS"
    )
    assert ElectionService(repo).get_me_status(7, 1).method == VoteMethod.NONE


# --- AdminElectionService ----------------------------------------------------


def test_list_applies_defaults_to_filter():
    repo = FakeAdminRepo()
    repo.items[1] = _admin()
    repo.total = 1
    items, pag = AdminElectionService(repo).list(AdminElectionListFilter(), 0, 0)
    assert [i.id for i in items] == [1]
    assert pag.page == 1
    assert pag.limit == 20
    assert repo.last_filter.limit == 20
    assert repo.last_filter.offset == 0


@pytest.mark.parametrize("total", [0, 1, 19, 20, 21, 45])
def test_list_total_pages_covers_all_items(total):
    repo = FakeAdminRepo()
    repo.total = total
    _, pag = AdminElectionService(repo).list(AdminElectionListFilter(), 2, 20)
    assert pag.total_items == total
    assert pag.total_pages * pag.limit >= total
    assert max(pag.total_pages - 1, 0) * pag.limit < max(total, 1)
    assert repo.last_filter.offset == 20


def test_create_get_update_roundtrip():
    repo = FakeAdminRepo()
    svc = AdminElectionService(repo)
    created = svc.create(AdminElectionCreateRequest(year=2024, name="Pemira", slug="pemira-2024"))
    assert svc.get(created.id) == created
    updated = svc.update(created.id, AdminElectionUpdateRequest(name="Pemira Raya"))
    assert updated.name == "Pemira Raya"
    assert updated.slug == "pemira-2024"


def test_get_unknown_raises():
    with pytest.raises(ElectionNotFoundError):
        AdminElectionService(FakeAdminRepo()).get(5)


def test_open_voting_stamps_start_time():
    repo = FakeAdminRepo()
    repo.items[1] = _admin()
    dto = AdminElectionService(repo, clock=lambda: NOW).open_voting(1)
    assert dto.status == ElectionStatus.VOTING_OPEN
    assert dto.voting_start_at == NOW
    assert dto.voting_end_at is None


def test_open_voting_keeps_existing_start_time():
    repo = FakeAdminRepo()
    repo.items[1] = _admin(status=ElectionStatus.CAMPAIGN, voting_start_at=EARLIER)
    dto = AdminElectionService(repo, clock=lambda: NOW).open_voting(1)
    assert dto.voting_start_at == EARLIER


def test_open_voting_already_open():
    repo = FakeAdminRepo()
    repo.items[1] = _admin(status=ElectionStatus.VOTING_OPEN)
    with pytest.raises(ElectionAlreadyOpenError):
        AdminElectionService(repo).open_voting(1)


def test_open_voting_archived_is_invalid():
    repo = FakeAdminRepo()
    repo.items[1] = _admin(status=ElectionStatus.ARCHIVED)
    with pytest.raises(InvalidStatusChangeError):
        AdminElectionService(repo).open_voting(1)


def test_close_voting_stamps_end_time():
    repo = FakeAdminRepo()
    repo.items[1] = _admin(status=ElectionStatus.VOTING_OPEN, voting_start_at=EARLIER)
    dto = AdminElectionService(repo, clock=lambda: NOW).close_voting(1)
    assert dto.status == ElectionStatus.VOTING_CLOSED
    assert dto.voting_end_at == NOW
    assert dto.voting_start_at == EARLIER


def test_close_voting_requires_open_state():
    repo = FakeAdminRepo()
    repo.items[1] = _admin(status=ElectionStatus.DRAFT)
    with pytest.raises(ElectionNotInOpenStateError):
        AdminElectionService(repo).close_voting(1)


def test_close_voting_unknown_election():
    with pytest.raises(ElectionNotFoundError):
        AdminElectionService(FakeAdminRepo()).close_voting(1)