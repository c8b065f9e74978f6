"""Voter-roll business logic."""

from __future__ import annotations

import dataclasses
from typing import Iterable, Iterator

from pemira.dpt.models import (
    DptRepository,
    ImportResult,
    ImportRow,
    ListFilter,
    VoterWithStatusDTO,
)
from pemira.pagination import Pagination, paginate

_DEFAULT_LIMIT = 50


class DptService:
    """Import, list and export the voters of an election."""

    def __init__(self, repo: DptRepository) -> None:
        self._repo = repo

    def import_rows(self, election_id: int, rows: Iterable[ImportRow]) -> ImportResult:
        return self._repo.import_voters_for_election(election_id, list(rows))

    def list(
        self, election_id: int, filter: ListFilter, page: int, limit: int
    ) -> tuple[list[VoterWithStatusDTO], Pagination]:
        """Return one page of voters; the given filter is left unchanged."""
        page = page if page > 0 else 1
        limit = limit if limit > 0 else _DEFAULT_LIMIT
        query = dataclasses.replace(filter, limit=limit, offset=(page - 1) * limit)
        items, total = self._repo.list_voters_for_election(election_id, query)
        return list(items), paginate(page, limit, total)

    def export(self, election_id: int, filter: ListFilter) -> Iterator[VoterWithStatusDTO]:
        """Yield every voter matching the filter."""
        yield from self._repo.stream_voters_for_election(election_id, filter)