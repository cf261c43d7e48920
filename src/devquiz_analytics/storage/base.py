"""Storage interface the analytics core depends on."""

from abc import ABC, abstractmethod

from devquiz_analytics.models.answer import AnswerRecord
from devquiz_analytics.models.common import (
    ALL_CATEGORIES,
    Category,
    ExperienceLevel,
    period_bounds,
)
from devquiz_analytics.models.milestone import Milestone, MilestoneType
from devquiz_analytics.models.skill_stats import CategoryStat, UserTotals
from devquiz_analytics.models.team_analytics import TeamAggregate, TeamAggregateKey
from devquiz_analytics.models.user_profile import UserProfile


class StatsStore(ABC):
    """Keyed storage for profiles, stats, answers, milestones and aggregates.

    Implementations only need read / put / increment semantics per key.
    Cross-key transactions are not required; callers serialize
    read-modify-write sequences themselves. ``increment_user_totals`` must
    be atomic on its own.
    """

    # Skill statistics

    @abstractmethod
    def get_category_stat(self, user_id: str, category: Category) -> CategoryStat | None:
        ...

    @abstractmethod
    def put_category_stat(self, stat: CategoryStat) -> None:
        ...

    @abstractmethod
    def list_category_stats(self, user_id: str) -> list[CategoryStat]:
        """All stats for a user, in canonical category order."""

    # Answers

    @abstractmethod
    def append_answer(self, record: AnswerRecord) -> None:
        ...

    @abstractmethod
    def find_answer(self, user_id: str, quiz_id: str) -> AnswerRecord | None:
        ...

    @abstractmethod
    def _all_answers(self, category: Category | None = None) -> list[AnswerRecord]:
        ...

    def list_answers_in_period(
        self, period: str, category: Category | None = None
    ) -> list[AnswerRecord]:
        """Answers whose ``answered_at`` falls within the ``YYYY-MM`` month."""
        start, end = period_bounds(period)
        return [
            a
            for a in self._all_answers(category)
            if start.sort_key <= a.answered_at.sort_key < end.sort_key
        ]

    # Milestones

    @abstractmethod
    def list_milestones(
        self,
        user_id: str,
        type: MilestoneType | None = None,
        category: Category | None = None,
    ) -> list[Milestone]:
        """Milestones for a user, newest first, optionally filtered."""

    @abstractmethod
    def insert_milestone(self, milestone: Milestone) -> None:
        ...

    # Profiles

    @abstractmethod
    def get_profile(self, user_id: str) -> UserProfile | None:
        ...

    @abstractmethod
    def put_profile(self, profile: UserProfile) -> None:
        ...

    @abstractmethod
    def list_profiles_by_level(self, level: ExperienceLevel) -> set[str]:
        ...

    # Cumulative user totals

    @abstractmethod
    def get_user_totals(self, user_id: str) -> UserTotals:
        """Totals for a user; zeroed totals when the user has none yet."""

    @abstractmethod
    def increment_user_totals(self, user_id: str, is_correct: bool) -> UserTotals:
        """Atomically add one answer and return the post-update totals."""

    # Team aggregates

    @abstractmethod
    def get_team_aggregate(self, key: TeamAggregateKey) -> TeamAggregate | None:
        ...

    @abstractmethod
    def put_team_aggregate(self, key: TeamAggregateKey, record: TeamAggregate) -> None:
        """Overwrite the record stored under ``key``."""


def sort_stats(stats: list[CategoryStat]) -> list[CategoryStat]:
    return sorted(stats, key=lambda s: ALL_CATEGORIES.index(s.category))


def filter_milestones(
    milestones: list[Milestone],
    type: MilestoneType | None,
    category: Category | None,
) -> list[Milestone]:
    selected = [
        m
        for m in milestones
        if (type is None or m.type == type)
        and (category is None or m.category == category)
    ]
    return sorted(selected, key=lambda m: m.achieved_at.sort_key, reverse=True)
