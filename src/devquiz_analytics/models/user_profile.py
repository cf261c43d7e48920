"""User profile model driving quiz personalization."""

from pydantic import BaseModel, Field, field_validator

from devquiz_analytics.models.common import Category, ExperienceLevel, Timestamp

MAX_FOCUS_AREAS = 5
MAX_CAREER_GOAL_LENGTH = 500


def _check_focus_areas(value: list[Category] | None) -> list[Category] | None:
    if value is None:
        return value
    if len(value) > MAX_FOCUS_AREAS:
        raise ValueError(f"at most {MAX_FOCUS_AREAS} focus areas are allowed")
    if len(set(value)) != len(value):
        raise ValueError("focus areas must not contain duplicates")
    return value


def _check_self_assessment(value: dict[Category, int] | None) -> dict[Category, int] | None:
    if value is None:
        return value
    for category, rating in value.items():
        if not 1 <= rating <= 5:
            raise ValueError(f"self assessment for {category} must be 1-5")
    return value


class UserProfile(BaseModel):
    user_id: str = Field(min_length=1)
    experience_level: ExperienceLevel
    years_of_experience: float = Field(default=0.0, ge=0)
    focus_areas: list[Category] = Field(default_factory=list)
    career_goal: str | None = Field(default=None, max_length=MAX_CAREER_GOAL_LENGTH)
    self_assessment: dict[Category, int] | None = None
    created_at: Timestamp = Field(default_factory=Timestamp.now)
    updated_at: Timestamp = Field(default_factory=Timestamp.now)

    validate_focus_areas = field_validator("focus_areas")(_check_focus_areas)
    validate_self_assessment = field_validator("self_assessment")(_check_self_assessment)


class ProfileUpdate(BaseModel):
    """Partial profile input; unset fields keep their previous value."""

    experience_level: ExperienceLevel | None = None
    years_of_experience: float | None = Field(default=None, ge=0)
    focus_areas: list[Category] | None = None
    career_goal: str | None = Field(default=None, max_length=MAX_CAREER_GOAL_LENGTH)
    self_assessment: dict[Category, int] | None = None

    validate_focus_areas = field_validator("focus_areas")(_check_focus_areas)
    validate_self_assessment = field_validator("self_assessment")(_check_self_assessment)
