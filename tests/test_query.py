from pemira.dpt.models import ListFilter
from pemira.dpt.query import build_where_clause


def test_only_election_filter():
    clause, args = build_where_clause(7, ListFilter())
    assert clause == "WHERE vs.election_id = $1"
    assert args == [7]


def test_all_filters_in_order():
    flt = ListFilter(
        faculty="Teknik",
        study_program="Informatika",
        cohort_year=2022,
        has_voted=False,
        eligible=True,
        search="ani",
    )
    clause, args = build_where_clause(3, flt)
    assert clause == (
        "WHERE vs.election_id = $1 AND v.faculty_name = $2 AND v.study_program_name = $3"
        " AND v.cohort_year = $4 AND vs.has_voted = $5 AND vs.is_eligible = $6"
        " AND (v.nim ILIKE $7 OR v.name ILIKE $7)"
    )
    assert args == [3, "Teknik", "Informatika", 2022, False, True, "%ani%"]


def test_placeholder_count_matches_args():
    clause, args = build_where_clause(1, ListFilter(search="x", has_voted=True))
    assert clause.endswith("(v.nim ILIKE $3 OR v.name ILIKE $3)")
    assert args[-1] == "%x%"
    assert len(args) == 3


def test_false_boolean_is_still_a_filter():
    clause, args = build_where_clause(2, ListFilter(eligible=False))
    assert "vs.is_eligible = $2" in clause
    assert args == [2, False]