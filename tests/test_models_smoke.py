"""Smoke tests for Pydantic models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from devquiz_analytics.models.answer import AnswerSubmission
from devquiz_analytics.models.common import (
    Category,
    Difficulty,
    ExperienceLevel,
    Timestamp,
    period_bounds,
)
from devquiz_analytics.models.milestone import Milestone, MilestoneType
from devquiz_analytics.models.skill_stats import CategoryStat, UserTotals
from devquiz_analytics.models.team_analytics import TeamAggregateKey
from devquiz_analytics.models.user_profile import UserProfile


class TestDifficulty:
    def test_numeric(self):
        assert [d.numeric for d in Difficulty] == [1, 2, 3]

    def test_steps_clamp(self):
        assert Difficulty.EASY.harder() == Difficulty.MEDIUM
        assert Difficulty.HARD.harder() == Difficulty.HARD
        assert Difficulty.HARD.easier() == Difficulty.MEDIUM
        assert Difficulty.EASY.easier() == Difficulty.EASY


class TestTimestamp:
    def test_datetime_round_trip(self):
        dt = datetime(2026, 3, 15, 12, 30, 5, 250000, tzinfo=UTC)
        ts = Timestamp.from_datetime(dt)
        assert ts.nanoseconds == 250_000_000
        assert ts.to_datetime() == dt

    def test_naive_datetime_is_utc(self):
        naive = Timestamp.from_datetime(datetime(2026, 1, 1))
        aware = Timestamp.from_datetime(datetime(2026, 1, 1, tzinfo=UTC))
        assert naive == aware

    def test_nanoseconds_bounded(self):
        with pytest.raises(ValidationError):
            Timestamp(seconds=0, nanoseconds=1_000_000_000)


class TestPeriodBounds:
    def test_regular_month(self):
        start, end = period_bounds("2026-03")
        assert start.to_datetime() == datetime(2026, 3, 1, tzinfo=UTC)
        assert end.to_datetime() == datetime(2026, 4, 1, tzinfo=UTC)

    def test_december_rolls_over(self):
        _, end = period_bounds("2025-12")
        assert end.to_datetime() == datetime(2026, 1, 1, tzinfo=UTC)

    def test_invalid(self):
        with pytest.raises(ValueError):
            period_bounds("2026-00")


class TestCategoryStat:
    def test_defaults(self):
        stat = CategoryStat(user_id="alice", category=Category.LOGIC)
        assert stat.total_quizzes == 0
        assert stat.average_difficulty == 1.0
        assert not stat.has_data
        assert stat.stat_id == "alice_logic"

    def test_correct_cannot_exceed_total(self):
        with pytest.raises(ValidationError):
            CategoryStat(user_id="alice", category=Category.LOGIC,
                         total_quizzes=2, correct_count=3, correct_rate=1.0)

    def test_rate_must_match_counts(self):
        with pytest.raises(ValidationError):
            CategoryStat(user_id="alice", category=Category.LOGIC,
                         total_quizzes=4, correct_count=1, correct_rate=0.5)

    def test_average_difficulty_range(self):
        with pytest.raises(ValidationError):
            CategoryStat(user_id="alice", category=Category.LOGIC, average_difficulty=3.5)


class TestUserTotals:
    def test_rate(self):
        assert UserTotals(user_id="a", total_quizzes=4, correct_count=3).correct_rate == 0.75
        assert UserTotals(user_id="a").correct_rate == 0.0


class TestUserProfile:
    def test_defaults(self):
        profile = UserProfile(user_id="alice", experience_level=ExperienceLevel.MID)
        assert profile.years_of_experience == 0
        assert profile.focus_areas == []
        assert profile.career_goal is None

    def test_empty_user_id_rejected(self):
        with pytest.raises(ValidationError):
            UserProfile(user_id="", experience_level=ExperienceLevel.MID)

    def test_base_difficulty(self):
        assert ExperienceLevel.JUNIOR.base_difficulty == Difficulty.EASY
        assert ExperienceLevel.MID.base_difficulty == Difficulty.MEDIUM
        assert ExperienceLevel.SENIOR.base_difficulty == Difficulty.HARD


class TestMilestone:
    def test_frozen(self):
        milestone = Milestone(user_id="alice", type=MilestoneType.FIRST_CORRECT,
                              achievement="First!")
        with pytest.raises(ValidationError):
            milestone.achievement = "changed"

    def test_achievement_length(self):
        with pytest.raises(ValidationError):
            Milestone(user_id="alice", type=MilestoneType.TOTAL_MILESTONE, achievement="x" * 201)


class TestAnswerSubmission:
    def test_is_correct(self):
        submission = AnswerSubmission(
            quiz_id="q1", category=Category.LOGIC, difficulty=Difficulty.EASY,
            selected_answer_index=2, correct_answer_index=2,
        )
        assert submission.is_correct

    def test_index_range(self):
        with pytest.raises(ValidationError):
            AnswerSubmission(
                quiz_id="q1", category=Category.LOGIC, difficulty=Difficulty.EASY,
                selected_answer_index=4, correct_answer_index=0,
            )


class TestTeamAggregateKey:
    @pytest.mark.parametrize(
        "level, category, expected",
        [
            (None, None, "2026-03"),
            (ExperienceLevel.MID, None, "2026-03_mid"),
            (None, Category.SECURITY, "2026-03_security"),
            (ExperienceLevel.MID, Category.SECURITY, "2026-03_mid_security"),
        ],
    )
    def test_analytics_id(self, level, category, expected):
        key = TeamAggregateKey(period="2026-03", experience_level=level, category=category)
        assert key.analytics_id == expected
