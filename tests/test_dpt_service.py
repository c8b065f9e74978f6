import pytest

from pemira.dpt.models import ImportResult, ImportRow, ListFilter, VoterWithStatusDTO
from pemira.dpt.service import DptService


class FakeRepo:
    def __init__(self, voters=None, total=None):
        self.voters = voters or []
        self.total = total if total is not None else len(self.voters)
        self.seen_filter = None
        self.imported = None

    def import_voters_for_election(self, election_id, rows):
        self.imported = (election_id, rows)
        return ImportResult(total_rows=len(rows), inserted_voters=len(rows))

    def list_voters_for_election(self, election_id, filter):
        self.seen_filter = filter
        return self.voters, self.total

    def stream_voters_for_election(self, election_id, filter):
        self.seen_filter = filter
        yield from self.voters


def voter(nim):
    return VoterWithStatusDTO(voter_id=len(nim), nim=nim)


def test_import_passes_rows_through():
    repo = FakeRepo()
    rows = [ImportRow("A1", "Ani", "Teknik", "TI", 2021)]
    result = DptService(repo).import_rows(5, rows)
    assert repo.imported == (5, rows)
    assert result.total_rows == 1


def test_list_applies_default_limit_without_mutating_filter():
    repo = FakeRepo()
    flt = ListFilter(faculty="Teknik")
    _, pag = DptService(repo).list(1, flt, 0, 0)
    assert repo.seen_filter.limit == 50
    assert repo.seen_filter.offset == 0
    assert repo.seen_filter.faculty == "Teknik"
    assert flt.limit == 0
    assert pag.to_dict()["page"] == 1
    assert pag.to_dict()["limit"] == 50


def test_list_offset_and_total_pages():
    repo = FakeRepo(voters=[voter("A1")], total=25)
    items, pag = DptService(repo).list(1, ListFilter(), 3, 10)
    assert repo.seen_filter.offset == 20
    assert pag.to_dict()["total_items"] == 25
    assert pag.to_dict()["total_pages"] == 3
    assert [v.nim for v in items] == ["A1"]


def test_export_yields_all_voters_in_order():
    repo = FakeRepo(voters=[voter("A1"), voter("B22")])
    flt = ListFilter(search="x")
    out = list(DptService(repo).export(2, flt))
    assert [v.nim for v in out] == ["A1", "B22"]
    assert repo.seen_filter is flt


def test_export_propagates_repository_errors():
    class Broken(FakeRepo):
        def stream_voters_for_election(self, election_id, filter):
            raise RuntimeError("db down")
            yield  # pragma: no cover

    with pytest.raises(RuntimeError):
        list(DptService(Broken()).export(1, ListFilter()))