"""Growth milestone detection rules."""

from collections.abc import Callable

import structlog

from devquiz_analytics.models.answer import AnswerOutcome
from devquiz_analytics.models.common import Timestamp
from devquiz_analytics.models.milestone import Milestone, MilestoneType
from devquiz_analytics.models.skill_stats import CategoryStat
from devquiz_analytics.storage.base import StatsStore

logger = structlog.get_logger()

MASTERY_RATE = 0.8
MASTERY_MIN_ATTEMPTS = 5
# Totals are matched by equality; a total that jumps past a threshold does not
# back-fill it.
TOTAL_THRESHOLDS: tuple[int, ...] = (10, 50, 100, 500, 1000)


class MilestoneDetector:
    """Evaluates the milestone rules for one processed answer.

    Rules are independent and several may fire for the same answer:

    - first_correct: the answer is correct and the user's cumulative correct
      count is now exactly 1.
    - category_master: the category's rate is >= 0.8 over >= 5 attempts and no
      category_master milestone exists yet for (user, category).
    - total_milestone: the user's cumulative total is exactly 10, 50, 100,
      500 or 1000.

    The mastery existence check reads the store, so ``award`` must run inside
    the same per-(user, category) critical section as the stat update.

    Args:
        store: Stats storage.
        clock: Source of the current time.
    """

    def __init__(self, store: StatsStore, clock: Callable[[], Timestamp] = Timestamp.now):
        self.store = store
        self.clock = clock

    def detect(self, outcome: AnswerOutcome, stat: CategoryStat) -> list[Milestone]:
        """Return the milestones this answer unlocks, without persisting them."""
        now = self.clock()
        found: list[Milestone] = []
        totals = outcome.totals

        if outcome.is_correct and totals.correct_count == 1:
            found.append(Milestone(
                user_id=outcome.user_id,
                type=MilestoneType.FIRST_CORRECT,
                category=outcome.category,
                achievement="Answered your first quiz correctly!",
                metadata={"quiz_id": outcome.quiz_id},
                achieved_at=now,
            ))

        if (
            stat.correct_rate >= MASTERY_RATE
            and stat.total_quizzes >= MASTERY_MIN_ATTEMPTS
            and not self.store.list_milestones(
                outcome.user_id, MilestoneType.CATEGORY_MASTER, outcome.category
            )
        ):
            found.append(Milestone(
                user_id=outcome.user_id,
                type=MilestoneType.CATEGORY_MASTER,
                category=outcome.category,
                achievement=f"Reached an 80% correct rate in {outcome.category.value}!",
                metadata={
                    "correct_rate": stat.correct_rate,
                    "total_quizzes": stat.total_quizzes,
                },
                achieved_at=now,
            ))

        if totals.total_quizzes in TOTAL_THRESHOLDS:
            found.append(Milestone(
                user_id=outcome.user_id,
                type=MilestoneType.TOTAL_MILESTONE,
                achievement=f"Answered {totals.total_quizzes} quizzes in total!",
                metadata={
                    "total_quizzes": totals.total_quizzes,
                    "correct_rate": totals.correct_rate,
                },
                achieved_at=now,
            ))

        return found

    def award(self, outcome: AnswerOutcome, stat: CategoryStat) -> list[Milestone]:
        """Detect and persist new milestones."""
        milestones = self.detect(outcome, stat)
        for milestone in milestones:
            self.store.insert_milestone(milestone)
            logger.info(
                "milestone_created",
                milestone_id=milestone.milestone_id,
                user_id=milestone.user_id,
                type=milestone.type.value,
            )
        return milestones
