import pytest

from pemira.monitoring import (
    MonitoringHandler,
    MonitoringService,
    ParticipationStats,
    TPSStats,
    VoteStats,
)
from pemira.web import Request


class FakeRepo:
    def __init__(self, fail=False):
        self.fail = fail
        self.vote_stats = [VoteStats(1, 1, total_votes=3), VoteStats(1, 2, total_votes=5)]
        self.participation = ParticipationStats(1, total_eligible=10, total_voted=8, participation_pct=80.0)
        self.tps = [TPSStats(1, "TPS 1", total_votes=4)]

    def get_vote_stats(self, election_id):
        if self.fail:
            raise RuntimeError("db down")
        return self.vote_stats

    def get_participation_stats(self, election_id):
        if self.fail:
            raise RuntimeError("db down")
        return self.participation

    def get_tps_stats(self, election_id):
        return self.tps

    def get_live_count(self, election_id):
        return {s.candidate_id: s.total_votes for s in self.vote_stats}


def test_snapshot_aggregates_votes():
    repo = FakeRepo()
    snap = MonitoringService(repo).get_live_count_snapshot(1)
    assert snap.election_id == 1
    assert snap.candidate_votes == {1: 3, 2: 5}
    assert snap.total_votes == sum(s.total_votes for s in repo.vote_stats)
    assert snap.participation is repo.participation
    assert snap.tps_stats == repo.tps


def test_snapshot_to_dict_uses_string_keys():
    data = MonitoringService(FakeRepo()).get_live_count_snapshot(1).to_dict()
    assert data["candidate_votes"] == {"1": 3, "2": 5}
    assert data["participation"]["total_eligible"] == 10
    assert data["tps_stats"][0]["tps_name"] == "TPS 1"
    assert data["timestamp"].endswith("Z")


def test_snapshot_propagates_repo_error():
    with pytest.raises(RuntimeError):
        MonitoringService(FakeRepo(fail=True)).get_live_count_snapshot(1)


def test_dashboard_summary_fields():
    repo = FakeRepo()
    summary = MonitoringService(repo).get_dashboard_summary(1)
    assert set(summary) == {
        "total_votes",
        "total_eligible",
        "participation_pct",
        "candidate_votes",
        "tps_count",
        "last_updated",
    }
    assert summary["tps_count"] == len(repo.tps)
    assert summary["participation_pct"] == repo.participation.participation_pct


def test_routes_patterns():
    handler = MonitoringHandler(MonitoringService(FakeRepo()))
    patterns = [pattern for _, pattern, _ in handler.routes()]
    assert patterns == [
        "/admin/monitoring/summary",
        "/admin/monitoring/live-count/{electionID}",
        "/admin/monitoring/participation/{electionID}",
    ]


def test_get_summary_ok():
    handler = MonitoringHandler(MonitoringService(FakeRepo()))
    resp = handler.get_summary(Request(query={"election_id": "1"}))
    assert resp.status == 200
    assert resp.json()["data"]["candidate_votes"] == {"1": 3, "2": 5}


def test_get_summary_failure_is_500():
    handler = MonitoringHandler(MonitoringService(FakeRepo(fail=True)))
    resp = handler.get_summary(Request())
    assert resp.status == 500
    assert resp.json() == {"code": "INTERNAL_ERROR", "message": "Failed to fetch summary"}


def test_get_live_count_bad_id():
    handler = MonitoringHandler(MonitoringService(FakeRepo()))
    resp = handler.get_live_count(Request(path_params={"electionID": "abc"}))
    assert resp.status == 400
    assert resp.json() == {"code": "INVALID_REQUEST", "message": "Invalid election ID"}


def test_get_live_count_ok():
    handler = MonitoringHandler(MonitoringService(FakeRepo()))
    resp = handler.get_live_count(Request(path_params={"electionID": "1"}))
    assert resp.status == 200
    assert resp.json()["data"]["candidate_votes"] == {"1": 3, "2": 5}


def test_get_live_count_failure():
    handler = MonitoringHandler(MonitoringService(FakeRepo(fail=True)))
    resp = handler.get_live_count(Request(path_params={"electionID": "1"}))
    assert resp.json()["message"] == "Failed to fetch live count"


def test_get_participation_ok():
    handler = MonitoringHandler(MonitoringService(FakeRepo()))
    resp = handler.get_participation(Request(path_params={"electionID": "1"}))
    assert resp.status == 200
    assert resp.json()["data"]["total_voted"] == 8


def test_get_participation_bad_id():
    handler = MonitoringHandler(MonitoringService(FakeRepo()))
    resp = handler.get_participation(Request(path_params={"electionID": " 1"}))
    assert resp.status == 400