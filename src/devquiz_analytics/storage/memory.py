"""In-process store backed by dicts. Used for tests and the ``memory`` backend."""

import threading

from devquiz_analytics.models.answer import AnswerRecord
from devquiz_analytics.models.common import Category, ExperienceLevel, Timestamp
from devquiz_analytics.models.milestone import Milestone, MilestoneType
from devquiz_analytics.models.skill_stats import CategoryStat, UserTotals
from devquiz_analytics.models.team_analytics import TeamAggregate, TeamAggregateKey
from devquiz_analytics.models.user_profile import UserProfile
from devquiz_analytics.storage.base import StatsStore, filter_milestones, sort_stats


class InMemoryStatsStore(StatsStore):
    """Stores copies of records so callers never share mutable state with it."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._stats: dict[tuple[str, Category], CategoryStat] = {}
        self._answers: list[AnswerRecord] = []
        self._milestones: list[Milestone] = []
        self._profiles: dict[str, UserProfile] = {}
        self._totals: dict[str, UserTotals] = {}
        self._aggregates: dict[str, TeamAggregate] = {}

    def get_category_stat(self, user_id: str, category: Category) -> CategoryStat | None:
        with self._lock:
            stat = self._stats.get((user_id, category))
            return stat.model_copy() if stat else None

    def put_category_stat(self, stat: CategoryStat) -> None:
        with self._lock:
            self._stats[(stat.user_id, stat.category)] = stat.model_copy()

    def list_category_stats(self, user_id: str) -> list[CategoryStat]:
        with self._lock:
            stats = [s.model_copy() for (uid, _), s in self._stats.items() if uid == user_id]
        return sort_stats(stats)

    def append_answer(self, record: AnswerRecord) -> None:
        with self._lock:
            self._answers.append(record.model_copy())

    def find_answer(self, user_id: str, quiz_id: str) -> AnswerRecord | None:
        with self._lock:
            for answer in self._answers:
                if answer.user_id == user_id and answer.quiz_id == quiz_id:
                    return answer.model_copy()
        return None

    def _all_answers(self, category: Category | None = None) -> list[AnswerRecord]:
        with self._lock:
            return [
                a.model_copy()
                for a in self._answers
                if category is None or a.category == category
            ]

    def list_milestones(
        self,
        user_id: str,
        type: MilestoneType | None = None,
        category: Category | None = None,
    ) -> list[Milestone]:
        with self._lock:
            owned = [m for m in self._milestones if m.user_id == user_id]
        return filter_milestones(owned, type, category)

    def insert_milestone(self, milestone: Milestone) -> None:
        with self._lock:
            self._milestones.append(milestone)

    def get_profile(self, user_id: str) -> UserProfile | None:
        with self._lock:
            profile = self._profiles.get(user_id)
            return profile.model_copy(deep=True) if profile else None

    def put_profile(self, profile: UserProfile) -> None:
        with self._lock:
            self._profiles[profile.user_id] = profile.model_copy(deep=True)

    def list_profiles_by_level(self, level: ExperienceLevel) -> set[str]:
        with self._lock:
            return {
                uid for uid, p in self._profiles.items() if p.experience_level == level
            }

    def get_user_totals(self, user_id: str) -> UserTotals:
        with self._lock:
            totals = self._totals.get(user_id)
            return totals.model_copy() if totals else UserTotals(user_id=user_id)

    def increment_user_totals(self, user_id: str, is_correct: bool) -> UserTotals:
        with self._lock:
            current = self._totals.get(user_id) or UserTotals(user_id=user_id)
            updated = UserTotals(
                user_id=user_id,
                total_quizzes=current.total_quizzes + 1,
                correct_count=current.correct_count + (1 if is_correct else 0),
                updated_at=Timestamp.now(),
            )
            self._totals[user_id] = updated
            return updated.model_copy()

    def get_team_aggregate(self, key: TeamAggregateKey) -> TeamAggregate | None:
        with self._lock:
            record = self._aggregates.get(key.analytics_id)
            return record.model_copy() if record else None

    def put_team_aggregate(self, key: TeamAggregateKey, record: TeamAggregate) -> None:
        with self._lock:
            self._aggregates[key.analytics_id] = record.model_copy()
