"""Smoke tests for the in-memory and JSON-file stores."""

import json
import threading
from datetime import UTC, datetime

import pytest

from conftest import make_stat

from devquiz_analytics.errors import StorageError
from devquiz_analytics.models.answer import AnswerRecord
from devquiz_analytics.models.common import (
    Category,
    Difficulty,
    ExperienceLevel,
    Timestamp,
)
from devquiz_analytics.models.milestone import Milestone, MilestoneType
from devquiz_analytics.models.team_analytics import TeamAggregate, TeamAggregateKey
from devquiz_analytics.models.user_profile import UserProfile
from devquiz_analytics.storage import json_store
from devquiz_analytics.storage.json_store import JsonStatsStore
from devquiz_analytics.storage.memory import InMemoryStatsStore


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStatsStore()
    return JsonStatsStore(tmp_path / "analytics")


def ts(*args) -> Timestamp:
    return Timestamp.from_datetime(datetime(*args, tzinfo=UTC))


def answer(quiz_id, user_id="alice", category=Category.LOGIC, at=None) -> AnswerRecord:
    return AnswerRecord(
        quiz_id=quiz_id,
        user_id=user_id,
        selected_answer_index=0,
        is_correct=True,
        category=category,
        difficulty=Difficulty.EASY,
        answered_at=at or ts(2026, 3, 1),
    )


class TestCategoryStats:
    def test_missing_stat(self, any_store):
        assert any_store.get_category_stat("alice", Category.LOGIC) is None
        assert any_store.list_category_stats("alice") == []

    def test_put_and_get(self, any_store):
        stat = make_stat(Category.SECURITY, 7, 3, average_difficulty=2.4,
                         last_answered_at=ts(2026, 3, 2))
        any_store.put_category_stat(stat)
        assert any_store.get_category_stat("alice", Category.SECURITY) == stat

    def test_list_in_canonical_order(self, any_store):
        for category in [Category.LOGIC, Category.BUG_FIX, Category.SECURITY]:
            any_store.put_category_stat(make_stat(category, 1, 1))
        any_store.put_category_stat(make_stat(Category.PERFORMANCE, 1, 1, user_id="bob"))
        assert [s.category for s in any_store.list_category_stats("alice")] == [
            Category.BUG_FIX, Category.SECURITY, Category.LOGIC,
        ]


class TestAnswers:
    def test_find_answer(self, any_store):
        any_store.append_answer(answer("q1"))
        assert any_store.find_answer("alice", "q1").quiz_id == "q1"
        assert any_store.find_answer("bob", "q1") is None

    def test_period_and_category_filter(self, any_store):
        any_store.append_answer(answer("q1", at=ts(2026, 2, 28, 23, 59, 59)))
        any_store.append_answer(answer("q2", at=ts(2026, 3, 1)))
        any_store.append_answer(answer("q3", category=Category.SECURITY, at=ts(2026, 3, 31, 23)))
        any_store.append_answer(answer("q4", at=ts(2026, 4, 1)))

        march = any_store.list_answers_in_period("2026-03")
        assert [a.quiz_id for a in march] == ["q2", "q3"]
        security = any_store.list_answers_in_period("2026-03", Category.SECURITY)
        assert [a.quiz_id for a in security] == ["q3"]

    def test_december_period(self, any_store):
        any_store.append_answer(answer("q1", at=ts(2025, 12, 31, 23, 59, 59)))
        any_store.append_answer(answer("q2", at=ts(2026, 1, 1)))
        assert [a.quiz_id for a in any_store.list_answers_in_period("2025-12")] == ["q1"]


class TestMilestones:
    def test_newest_first_and_filtered(self, any_store):
        older = Milestone(user_id="alice", type=MilestoneType.FIRST_CORRECT,
                          category=Category.LOGIC, achievement="first",
                          achieved_at=ts(2026, 3, 1))
        newer = Milestone(user_id="alice", type=MilestoneType.CATEGORY_MASTER,
                          category=Category.LOGIC, achievement="master",
                          achieved_at=ts(2026, 3, 5))
        any_store.insert_milestone(older)
        any_store.insert_milestone(newer)

        assert any_store.list_milestones("alice") == [newer, older]
        assert any_store.list_milestones("alice", MilestoneType.CATEGORY_MASTER) == [newer]
        assert any_store.list_milestones("alice", category=Category.SECURITY) == []
        assert any_store.list_milestones("bob") == []


class TestProfilesAndTotals:
    def test_profile_round_trip(self, any_store):
        profile = UserProfile(
            user_id="alice",
            experience_level=ExperienceLevel.SENIOR,
            focus_areas=[Category.SECURITY],
            self_assessment={Category.SECURITY: 4},
        )
        any_store.put_profile(profile)
        assert any_store.get_profile("alice") == profile
        assert any_store.list_profiles_by_level(ExperienceLevel.SENIOR) == {"alice"}
        assert any_store.list_profiles_by_level(ExperienceLevel.MID) == set()

    def test_totals_start_at_zero(self, any_store):
        totals = any_store.get_user_totals("alice")
        assert totals.total_quizzes == 0
        assert totals.correct_rate == 0.0

    def test_increment_totals(self, any_store):
        any_store.increment_user_totals("alice", True)
        totals = any_store.increment_user_totals("alice", False)
        assert totals.total_quizzes == 2
        assert totals.correct_count == 1
        assert any_store.get_user_totals("alice").total_quizzes == 2

    def test_concurrent_increments(self, any_store):
        def worker():
            for _ in range(10):
                any_store.increment_user_totals("alice", True)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert any_store.get_user_totals("alice").total_quizzes == 80


class TestTeamAggregates:
    def test_overwrite(self, any_store):
        key = TeamAggregateKey(period="2026-03", experience_level=ExperienceLevel.MID)

        def record(users):
            return TeamAggregate(
                analytics_id=key.analytics_id, period="2026-03",
                experience_level=ExperienceLevel.MID,
                avg_correct_rate=0.5, total_quizzes=10, active_users=users,
                percentile25=0.4, percentile50=0.5, percentile75=0.6, percentile90=0.7,
                calculated_at=ts(2026, 4, 1),
            )

        assert any_store.get_team_aggregate(key) is None
        any_store.put_team_aggregate(key, record(2))
        any_store.put_team_aggregate(key, record(3))
        assert any_store.get_team_aggregate(key) == record(3)


class TestJsonStore:
    def test_files_written_per_collection(self, tmp_path):
        store = JsonStatsStore(tmp_path)
        store.put_category_stat(make_stat(Category.LOGIC, 2, 1))
        data = json.loads((tmp_path / "skill_stats.json").read_text())
        assert data["alice_logic"]["correct_count"] == 1

    def test_data_survives_new_instance(self, tmp_path):
        JsonStatsStore(tmp_path).append_answer(answer("q1"))
        assert JsonStatsStore(tmp_path).find_answer("alice", "q1") is not None

    def test_failed_write_removes_temp_file(self, tmp_path, monkeypatch):
        store = JsonStatsStore(tmp_path)
        store.increment_user_totals("alice", True)

        def broken_dump(data, fp, **kwargs):
            fp.write("{")
            raise OSError("disk full")

        monkeypatch.setattr(json_store.json, "dump", broken_dump)
        with pytest.raises(OSError, match="disk full"):
            store.increment_user_totals("alice", True)
        monkeypatch.undo()

        assert sorted(p.name for p in tmp_path.iterdir()) == ["users.json", "users.json.lock"]
        assert store.get_user_totals("alice").total_quizzes == 1

    def test_corrupt_document_raises(self, tmp_path):
        (tmp_path / "users.json").write_text("{not json")
        store = JsonStatsStore(tmp_path)
        with pytest.raises(StorageError):
            store.get_user_totals("alice")

    def test_invalid_record_raises(self, tmp_path):
        (tmp_path / "skill_stats.json").write_text(json.dumps({
            "alice_logic": {"user_id": "alice", "category": "logic",
                            "total_quizzes": 1, "correct_count": 5, "correct_rate": 1.0},
        }))
        with pytest.raises(StorageError):
            JsonStatsStore(tmp_path).get_category_stat("alice", Category.LOGIC)
