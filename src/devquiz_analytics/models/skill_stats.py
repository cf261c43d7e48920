"""Per-category skill statistics and per-user cumulative totals."""

from pydantic import BaseModel, Field, model_validator

from devquiz_analytics.models.common import Category, Timestamp


class CategoryStat(BaseModel):
    """Running statistics for one (user, category) pair.

    ``correct_rate`` is derived from the two counts and is re-checked on
    construction. The trend fields are carried for storage compatibility but
    are never computed and stay at 0.
    """

    user_id: str
    category: Category
    total_quizzes: int = Field(default=0, ge=0)
    correct_count: int = Field(default=0, ge=0)
    correct_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    average_difficulty: float = Field(default=1.0, ge=1.0, le=3.0)
    last_answered_at: Timestamp | None = None
    weekly_trend: float = Field(default=0.0, ge=-1.0, le=1.0)
    monthly_trend: float = Field(default=0.0, ge=-1.0, le=1.0)
    calculated_at: Timestamp = Field(default_factory=Timestamp.now)

    @model_validator(mode="after")
    def _counts_consistent(self) -> "CategoryStat":
        if self.correct_count > self.total_quizzes:
            raise ValueError("correct_count cannot exceed total_quizzes")
        expected = self.correct_count / self.total_quizzes if self.total_quizzes else 0.0
        if abs(self.correct_rate - expected) > 1e-12:
            raise ValueError("correct_rate is inconsistent with the counts")
        return self

    @property
    def stat_id(self) -> str:
        return f"{self.user_id}_{self.category.value}"

    @property
    def has_data(self) -> bool:
        return self.total_quizzes > 0


class UserTotals(BaseModel):
    """Cumulative answer counts across all categories for one user."""

    user_id: str
    total_quizzes: int = Field(default=0, ge=0)
    correct_count: int = Field(default=0, ge=0)
    updated_at: Timestamp | None = None

    @property
    def correct_rate(self) -> float:
        if self.total_quizzes == 0:
            return 0.0
        return self.correct_count / self.total_quizzes
