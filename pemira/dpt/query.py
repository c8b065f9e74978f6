"""SQL fragment building for voter-roll queries."""

from __future__ import annotations

from typing import Any

from pemira.dpt.models import ListFilter


def build_where_clause(election_id: int, filter: ListFilter) -> tuple[str, list[Any]]:
    """Return a WHERE clause with numbered placeholders and its arguments."""
    conditions: list[str] = []
    args: list[Any] = []

    def add(template: str, value: Any) -> None:
        args.append(value)
        conditions.append(template.replace("?", f"${len(args)}"))

    add("vs.election_id = ?", election_id)
    if filter.faculty:
        add("v.faculty_name = ?", filter.faculty)
    if filter.study_program:
        add("v.study_program_name = ?", filter.study_program)
    if filter.cohort_year is not None:
        add("v.cohort_year = ?", filter.cohort_year)
    if filter.has_voted is not None:
        add("vs.has_voted = ?", filter.has_voted)
    if filter.eligible is not None:
        add("vs.is_eligible = ?", filter.eligible)
    if filter.search:
        add("(v.nim ILIKE ? OR v.name ILIKE ?)", f"%{filter.search}%")

    return "WHERE " + " AND ".join(conditions), args