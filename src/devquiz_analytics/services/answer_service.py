"""The answer pipeline: record, update statistics, detect milestones."""

from collections.abc import Callable

import structlog
from pydantic import BaseModel, Field

from devquiz_analytics.analytics.locks import KeyedLock
from devquiz_analytics.analytics.milestones import MilestoneDetector
from devquiz_analytics.analytics.skill_tracker import SkillTracker
from devquiz_analytics.models.answer import AnswerOutcome, AnswerRecord, AnswerSubmission
from devquiz_analytics.models.common import Timestamp
from devquiz_analytics.models.milestone import Milestone
from devquiz_analytics.models.skill_stats import CategoryStat, UserTotals
from devquiz_analytics.storage.base import StatsStore

logger = structlog.get_logger()


class AnswerResult(BaseModel):
    answer: AnswerRecord
    is_correct: bool
    already_answered: bool = False
    totals: UserTotals
    category_stat: CategoryStat | None = None
    stats: list[CategoryStat] = Field(default_factory=list)
    new_milestones: list[Milestone] = Field(default_factory=list)


class AnswerService:
    """Processes one answer end to end.

    The duplicate check runs under a (user, quiz) lock and the stat
    read-modify-write and milestone existence check under a (user, category)
    lock, so a quiz is counted once whatever category it claims and mastery
    is awarded at most once. User totals are incremented atomically by the
    store.

    The answer record is written last. It is what the duplicate check reads,
    so a failure in any earlier step leaves the quiz unanswered and a retry
    reprocesses it.

    Args:
        store: Stats storage.
        locks: Shared per-key lock registry.
        clock: Source of the current time.
    """

    def __init__(
        self,
        store: StatsStore,
        locks: KeyedLock | None = None,
        clock: Callable[[], Timestamp] = Timestamp.now,
    ):
        self.store = store
        self.locks = locks or KeyedLock()
        self.clock = clock
        self.tracker = SkillTracker(store, clock)
        self.detector = MilestoneDetector(store, clock)

    def submit(self, user_id: str, submission: AnswerSubmission) -> AnswerResult:
        """Record an answer and return the updated statistics and new milestones.

        A second answer to the same quiz by the same user changes nothing and
        returns the original answer with ``already_answered`` set.
        """
        try:
            with (
                self.locks.hold(("quiz", user_id, submission.quiz_id)),
                self.locks.hold(("category", user_id, submission.category)),
            ):
                previous = self.store.find_answer(user_id, submission.quiz_id)
                if previous is not None:
                    logger.info(
                        "quiz_already_answered",
                        user_id=user_id,
                        quiz_id=submission.quiz_id,
                    )
                    return AnswerResult(
                        answer=previous,
                        is_correct=previous.is_correct,
                        already_answered=True,
                        totals=self.store.get_user_totals(user_id),
                        stats=self.store.list_category_stats(user_id),
                    )

                record = AnswerRecord(
                    quiz_id=submission.quiz_id,
                    user_id=user_id,
                    merge_request_id=submission.merge_request_id,
                    selected_answer_index=submission.selected_answer_index,
                    is_correct=submission.is_correct,
                    category=submission.category,
                    difficulty=submission.difficulty,
                    answered_at=self.clock(),
                )
                stat = self.tracker.record(
                    user_id, record.category, record.difficulty, record.is_correct
                )
                totals = self.store.increment_user_totals(user_id, record.is_correct)
                outcome = AnswerOutcome(
                    user_id=user_id,
                    category=record.category,
                    difficulty=record.difficulty,
                    is_correct=record.is_correct,
                    totals=totals,
                    quiz_id=record.quiz_id,
                )
                milestones = self.detector.award(outcome, stat)
                self.store.append_answer(record)
        except Exception as e:
            logger.error(
                "answer_processing_failed",
                user_id=user_id,
                quiz_id=submission.quiz_id,
                error=str(e),
            )
            raise

        logger.info(
            "answer_recorded",
            user_id=user_id,
            quiz_id=record.quiz_id,
            is_correct=record.is_correct,
            new_milestones=len(milestones),
        )
        return AnswerResult(
            answer=record,
            is_correct=record.is_correct,
            totals=totals,
            category_stat=stat,
            stats=self.store.list_category_stats(user_id),
            new_milestones=milestones,
        )
