"""Personalized quiz selection and learning recommendations."""

import math
import random
from collections.abc import Callable
from enum import StrEnum

import structlog
from pydantic import BaseModel, Field

from devquiz_analytics.models.common import (
    ALL_CATEGORIES,
    Category,
    Difficulty,
    ExperienceLevel,
    Timestamp,
)
from devquiz_analytics.models.skill_stats import CategoryStat
from devquiz_analytics.models.user_profile import UserProfile

logger = structlog.get_logger()

# Weights for each priority signal
PRIORITY_WEIGHTS: dict[str, float] = {
    "weakness": 0.4,
    "goal_relevance": 0.3,
    "review_timing": 0.2,
    "growth_opportunity": 0.1,
}

MIN_ATTEMPTS_FOR_WEAKNESS = 3
MIN_ATTEMPTS_FOR_ADJUSTMENT = 5
WEAK_AREA_RATE = 0.6
MASTERED_RATE = 0.8
ESCALATE_RATE = 0.8
DEESCALATE_RATE = 0.4
LEVEL_UP_TOTAL = 50
TOP_CANDIDATES = 3
SECONDS_PER_DAY = 86400


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_rate(cls, rate: float) -> "Priority":
        if rate < 0.3:
            return cls.HIGH
        elif rate < 0.5:
            return cls.MEDIUM
        return cls.LOW


class WeakArea(BaseModel):
    category: Category
    correct_rate: float
    priority: Priority


class Recommendations(BaseModel):
    weak_areas: list[WeakArea] = Field(default_factory=list)
    suggested_focus_areas: list[Category] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


class QuizSelection(BaseModel):
    """Category and difficulty for the next generated quiz."""

    category: Category
    difficulty: Difficulty


def _with_data(stat: CategoryStat | None) -> CategoryStat | None:
    """Treat a zero-attempt stat the same as a missing one."""
    if stat is None or not stat.has_data:
        return None
    return stat


class Recommender:
    """Scores categories and difficulties from a profile and skill statistics.

    Category priority is a weighted sum of four signals (weakness 40%, goal
    relevance 30%, review timing 20%, growth opportunity 10%). The next
    category is drawn at random from the top three so the same category is
    not served every time.

    Args:
        rng: Random source for category selection. Pass a seeded
            ``random.Random`` for reproducible picks.
        clock: Source of the current time for review timing.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], Timestamp] = Timestamp.now,
    ):
        self.rng = rng or random.Random()
        self.clock = clock

    def _days_since(self, timestamp: Timestamp) -> int:
        elapsed = self.clock().as_float() - timestamp.as_float()
        return math.floor(elapsed / SECONDS_PER_DAY)

    def score_category(
        self,
        profile: UserProfile,
        stat: CategoryStat | None,
        category: Category,
    ) -> float:
        """Priority score in [0, 1] for quizzing ``category`` next."""
        stat = _with_data(stat)
        score = 0.0

        # 1. Weakness: lower correct rate means higher priority
        if stat and stat.total_quizzes >= MIN_ATTEMPTS_FOR_WEAKNESS:
            score += (1 - stat.correct_rate) * PRIORITY_WEIGHTS["weakness"]
        else:
            score += 0.5 * PRIORITY_WEIGHTS["weakness"]

        # 2. Goal relevance
        if category in profile.focus_areas:
            score += PRIORITY_WEIGHTS["goal_relevance"]

        # 3. Review timing
        if stat is None or stat.last_answered_at is None:
            score += 0.75 * PRIORITY_WEIGHTS["review_timing"]
        else:
            days = self._days_since(stat.last_answered_at)
            if days >= 7:
                score += PRIORITY_WEIGHTS["review_timing"]
            elif days >= 3:
                score += 0.5 * PRIORITY_WEIGHTS["review_timing"]

        # 4. Growth opportunity: mostly easy questions so far
        if stat and stat.average_difficulty < 2:
            score += PRIORITY_WEIGHTS["growth_opportunity"]

        return score

    def rank_categories(
        self, profile: UserProfile, stats: list[CategoryStat]
    ) -> list[tuple[Category, float]]:
        """All categories with their scores, highest first (ties keep canonical order)."""
        by_category = {s.category: s for s in stats}
        scored = [
            (category, self.score_category(profile, by_category.get(category), category))
            for category in ALL_CATEGORIES
        ]
        return sorted(scored, key=lambda item: item[1], reverse=True)

    def select_category(
        self, profile: UserProfile | None, stats: list[CategoryStat]
    ) -> Category:
        if profile is None or not stats:
            return self.rng.choice(ALL_CATEGORIES)

        ranked = self.rank_categories(profile, stats)
        top = ranked[:TOP_CANDIDATES]
        selected = self.rng.choice(top)[0]
        logger.info(
            "category_selected",
            user_id=profile.user_id,
            selected=selected.value,
            scores={c.value: round(s, 3) for c, s in ranked},
        )
        return selected

    def select_difficulty(
        self, profile: UserProfile | None, stat: CategoryStat | None
    ) -> Difficulty:
        if profile is None:
            return Difficulty.EASY

        try:
            base = ExperienceLevel(profile.experience_level).base_difficulty
        except ValueError:
            base = Difficulty.MEDIUM

        stat = _with_data(stat)
        if stat and stat.total_quizzes >= MIN_ATTEMPTS_FOR_ADJUSTMENT:
            if stat.correct_rate >= ESCALATE_RATE:
                return base.harder()
            if stat.correct_rate <= DEESCALATE_RATE:
                return base.easier()
        return base

    def next_quiz(
        self, profile: UserProfile | None, stats: list[CategoryStat]
    ) -> QuizSelection:
        """Pick the category, then the difficulty for that category."""
        category = self.select_category(profile, stats)
        stat = next((s for s in stats if s.category == category), None)
        return QuizSelection(
            category=category,
            difficulty=self.select_difficulty(profile, stat),
        )

    def recommend(
        self, profile: UserProfile | None, stats: list[CategoryStat]
    ) -> Recommendations:
        """Weak areas, suggested focus areas and next-step hints."""
        result = Recommendations()
        stats = [s for s in stats if s.has_data]

        if not stats:
            result.next_steps.append(
                "Start answering quizzes to build up your skill data."
            )
            return result

        weak = sorted(
            (
                s for s in stats
                if s.total_quizzes >= MIN_ATTEMPTS_FOR_WEAKNESS
                and s.correct_rate < WEAK_AREA_RATE
            ),
            key=lambda s: s.correct_rate,
        )
        result.weak_areas = [
            WeakArea(
                category=s.category,
                correct_rate=s.correct_rate,
                priority=Priority.from_rate(s.correct_rate),
            )
            for s in weak
        ]

        if profile and profile.focus_areas:
            result.suggested_focus_areas = list(profile.focus_areas)
        elif weak:
            result.suggested_focus_areas = [weak[0].category]

        if weak:
            result.next_steps.append(
                f"Deepen your understanding of {weak[0].category.value} "
                f"(current correct rate: {weak[0].correct_rate:.0%})."
            )

        mastered = [
            s for s in stats
            if s.total_quizzes >= MIN_ATTEMPTS_FOR_ADJUSTMENT
            and s.correct_rate >= MASTERED_RATE
        ]
        if mastered:
            result.next_steps.append(
                f"You have mastered {mastered[0].category.value}! "
                "Try more advanced questions."
            )

        if profile and profile.experience_level == ExperienceLevel.JUNIOR:
            total = sum(s.total_quizzes for s in stats)
            if total >= LEVEL_UP_TOTAL:
                result.next_steps.append(
                    f"{LEVEL_UP_TOTAL} quizzes answered! Try mid-level questions next."
                )

        return result
