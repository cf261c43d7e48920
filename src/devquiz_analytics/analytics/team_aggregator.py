"""Batch computation of team-wide benchmark percentiles."""

from collections import defaultdict
from collections.abc import Callable

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from devquiz_analytics.analytics.percentiles import correct_rate, summarize_rates
from devquiz_analytics.errors import NotFoundError, ValidationError
from devquiz_analytics.models.common import Category, ExperienceLevel, Timestamp
from devquiz_analytics.models.team_analytics import TeamAggregate, TeamAggregateKey
from devquiz_analytics.storage.base import StatsStore

logger = structlog.get_logger()


class Benchmarks(BaseModel):
    overall: TeamAggregate | None = None
    specific: TeamAggregate | None = None


def _make_key(
    period: str,
    experience_level: ExperienceLevel | str | None,
    category: Category | str | None,
) -> TeamAggregateKey:
    try:
        return TeamAggregateKey(
            period=period, experience_level=experience_level, category=category
        )
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid team analytics query",
            details=e.errors(include_url=False, include_context=False),
        ) from e


class TeamAggregator:
    """Recomputes cohort statistics for a (period, level?, category?) key.

    Each run scans the period's answers, computes one correct rate per user,
    optionally keeps only users whose profile has the requested experience
    level, and overwrites the stored aggregate. Runs are pure recomputations:
    repeating one on unchanged answers stores the same record.

    Args:
        store: Stats storage.
        clock: Source of ``calculated_at``.
    """

    def __init__(self, store: StatsStore, clock: Callable[[], Timestamp] = Timestamp.now):
        self.store = store
        self.clock = clock

    def aggregate(
        self,
        period: str,
        experience_level: ExperienceLevel | str | None = None,
        category: Category | str | None = None,
    ) -> TeamAggregate:
        key = _make_key(period, experience_level, category)

        answers = self.store.list_answers_in_period(key.period, key.category)

        per_user: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for answer in answers:
            counts = per_user[answer.user_id]
            counts[1] += 1
            if answer.is_correct:
                counts[0] += 1

        users = sorted(per_user)
        if key.experience_level is not None:
            # Users without a matching profile are left out, not bucketed.
            level_users = self.store.list_profiles_by_level(key.experience_level)
            users = [u for u in users if u in level_users]

        rates = [correct_rate(*per_user[u]) for u in users]
        summary = summarize_rates(rates)

        record = TeamAggregate(
            analytics_id=key.analytics_id,
            period=key.period,
            experience_level=key.experience_level,
            category=key.category,
            total_quizzes=len(answers),
            active_users=len(users),
            calculated_at=self.clock(),
            **summary,
        )
        self.store.put_team_aggregate(key, record)

        logger.info(
            "team_analytics_calculated",
            analytics_id=key.analytics_id,
            active_users=record.active_users,
            avg_correct_rate=round(record.avg_correct_rate, 3),
        )
        return record

    def get(
        self,
        period: str,
        experience_level: ExperienceLevel | str | None = None,
        category: Category | str | None = None,
    ) -> TeamAggregate:
        key = _make_key(period, experience_level, category)
        record = self.store.get_team_aggregate(key)
        if record is None:
            raise NotFoundError(f"Team analytics for {key.analytics_id}")
        return record

    def benchmarks(
        self,
        period: str,
        experience_level: ExperienceLevel | str | None = None,
        category: Category | str | None = None,
    ) -> Benchmarks:
        """The overall aggregate plus, when filters are given, the filtered one."""
        overall_key = _make_key(period, None, None)
        result = Benchmarks(overall=self.store.get_team_aggregate(overall_key))
        if experience_level or category:
            specific_key = _make_key(period, experience_level, category)
            result.specific = self.store.get_team_aggregate(specific_key)
        return result
