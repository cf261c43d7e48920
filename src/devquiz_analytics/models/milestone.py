"""Growth milestone records."""

import uuid
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from devquiz_analytics.models.common import Category, Timestamp


class MilestoneType(StrEnum):
    FIRST_CORRECT = "first_correct"
    CATEGORY_MASTER = "category_master"
    STREAK_ACHIEVEMENT = "streak_achievement"  # no detection rule yet
    DIFFICULTY_UNLOCK = "difficulty_unlock"  # no detection rule yet
    TOTAL_MILESTONE = "total_milestone"


class Milestone(BaseModel):
    """An achievement in a user's answer history. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    milestone_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    type: MilestoneType
    category: Category | None = None
    achievement: str = Field(min_length=1, max_length=200)
    metadata: dict[str, Any] = Field(default_factory=dict)
    achieved_at: Timestamp = Field(default_factory=Timestamp.now)
