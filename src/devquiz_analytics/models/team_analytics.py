"""Team-wide benchmark aggregates, one record per (period, level, category) key."""

from pydantic import BaseModel, Field, field_validator

from devquiz_analytics.models.common import (
    PERIOD_PATTERN,
    Category,
    ExperienceLevel,
    Timestamp,
)


class TeamAggregateKey(BaseModel):
    period: str
    experience_level: ExperienceLevel | None = None
    category: Category | None = None

    @field_validator("period")
    @classmethod
    def _check_period(cls, value: str) -> str:
        if not PERIOD_PATTERN.match(value):
            raise ValueError("period must be in YYYY-MM format")
        return value

    @property
    def analytics_id(self) -> str:
        """Storage id, e.g. ``2026-03``, ``2026-03_mid`` or ``2026-03_mid_security``."""
        parts = [self.period]
        if self.experience_level:
            parts.append(self.experience_level.value)
        if self.category:
            parts.append(self.category.value)
        return "_".join(parts)


class TeamAggregate(BaseModel):
    """Cohort statistics for a key. Recomputed and overwritten on every run."""

    analytics_id: str
    period: str
    experience_level: ExperienceLevel | None = None
    category: Category | None = None
    avg_correct_rate: float = Field(ge=0.0, le=1.0)
    total_quizzes: int = Field(ge=0)
    active_users: int = Field(ge=0)
    percentile25: float = Field(ge=0.0, le=1.0)
    percentile50: float = Field(ge=0.0, le=1.0)
    percentile75: float = Field(ge=0.0, le=1.0)
    percentile90: float = Field(ge=0.0, le=1.0)
    calculated_at: Timestamp
