"""Incremental per-category skill statistics."""

from collections.abc import Callable

import structlog

from devquiz_analytics.analytics.percentiles import correct_rate
from devquiz_analytics.models.common import Category, Difficulty, Timestamp
from devquiz_analytics.models.skill_stats import CategoryStat
from devquiz_analytics.storage.base import StatsStore

logger = structlog.get_logger()


def apply_outcome(
    existing: CategoryStat | None,
    user_id: str,
    category: Category,
    difficulty: Difficulty,
    is_correct: bool,
    now: Timestamp,
) -> CategoryStat:
    """Fold one answer into a category's running statistics.

    A missing stat and a stat with zero attempts are treated the same way.
    The average difficulty is the exact running mean over all answers.

    Args:
        existing: Current stat for (user, category), if any.
        user_id: Owner of the stat.
        category: Category answered.
        difficulty: Difficulty of the answered quiz.
        is_correct: Whether the answer was correct.
        now: Time of the answer.

    Returns:
        A new CategoryStat; ``existing`` is not modified.
    """
    value = difficulty.numeric
    if existing is None or not existing.has_data:
        correct = 1 if is_correct else 0
        return CategoryStat(
            user_id=user_id,
            category=category,
            total_quizzes=1,
            correct_count=correct,
            correct_rate=float(correct),
            average_difficulty=float(value),
            last_answered_at=now,
            calculated_at=now,
        )

    total = existing.total_quizzes + 1
    correct = existing.correct_count + (1 if is_correct else 0)
    average = (existing.average_difficulty * existing.total_quizzes + value) / total
    return existing.model_copy(
        update={
            "total_quizzes": total,
            "correct_count": correct,
            "correct_rate": correct_rate(correct, total),
            "average_difficulty": average,
            "last_answered_at": now,
            "calculated_at": now,
        }
    )


class SkillTracker:
    """Reads, updates and persists the stat for one (user, category) per answer.

    Callers that may run concurrently for the same key must hold that key's
    lock around ``record`` (see ``AnswerService``).

    Args:
        store: Stats storage.
        clock: Source of the current time.
    """

    def __init__(self, store: StatsStore, clock: Callable[[], Timestamp] = Timestamp.now):
        self.store = store
        self.clock = clock

    def record(
        self,
        user_id: str,
        category: Category,
        difficulty: Difficulty,
        is_correct: bool,
    ) -> CategoryStat:
        existing = self.store.get_category_stat(user_id, category)
        updated = apply_outcome(
            existing, user_id, category, difficulty, is_correct, self.clock()
        )
        self.store.put_category_stat(updated)

        if existing is None:
            logger.info("skill_stats_created", user_id=user_id, category=category.value)
        else:
            logger.info(
                "skill_stats_updated",
                user_id=user_id,
                category=category.value,
                total_quizzes=updated.total_quizzes,
                correct_rate=round(updated.correct_rate, 3),
            )
        return updated
