"""Shared fixtures: a controllable clock, an in-memory store and stat builders."""

from datetime import UTC, datetime

import pytest

from devquiz_analytics.models.common import Category, Timestamp
from devquiz_analytics.models.skill_stats import CategoryStat
from devquiz_analytics.storage.memory import InMemoryStatsStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = Timestamp.from_datetime(start)

    def __call__(self) -> Timestamp:
        return self.current

    def advance(self, days: float = 0, seconds: int = 0) -> None:
        self.current = Timestamp(
            seconds=self.current.seconds + int(days * 86400) + seconds,
            nanoseconds=self.current.nanoseconds,
        )

    def days_ago(self, days: float) -> Timestamp:
        return Timestamp(
            seconds=self.current.seconds - int(days * 86400),
            nanoseconds=self.current.nanoseconds,
        )


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def store():
    return InMemoryStatsStore()


def make_stat(
    category: Category,
    total: int,
    correct: int,
    average_difficulty: float = 2.0,
    last_answered_at: Timestamp | None = None,
    user_id: str = "alice",
) -> CategoryStat:
    return CategoryStat(
        user_id=user_id,
        category=category,
        total_quizzes=total,
        correct_count=correct,
        correct_rate=correct / total if total else 0.0,
        average_difficulty=average_difficulty,
        last_answered_at=last_answered_at,
    )
