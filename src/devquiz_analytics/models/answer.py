"""Answer history records and the outcome passed through the analytics pipeline."""

import uuid

from pydantic import BaseModel, Field

from devquiz_analytics.models.common import Category, Difficulty, Timestamp
from devquiz_analytics.models.skill_stats import UserTotals


class AnswerRecord(BaseModel):
    """One stored answer. Category and difficulty are denormalized from the quiz."""

    answer_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    quiz_id: str
    user_id: str
    merge_request_id: str | None = None
    selected_answer_index: int = Field(ge=0, le=3)
    is_correct: bool
    category: Category
    difficulty: Difficulty
    answered_at: Timestamp = Field(default_factory=Timestamp.now)


class AnswerSubmission(BaseModel):
    """A validated answer coming from the command or HTTP layer."""

    quiz_id: str = Field(min_length=1)
    category: Category
    difficulty: Difficulty
    selected_answer_index: int = Field(ge=0, le=3)
    correct_answer_index: int = Field(ge=0, le=3)
    merge_request_id: str | None = None

    @property
    def is_correct(self) -> bool:
        return self.selected_answer_index == self.correct_answer_index


class AnswerOutcome(BaseModel):
    """What milestone detection needs to know about a just-processed answer."""

    user_id: str
    category: Category
    difficulty: Difficulty
    is_correct: bool
    totals: UserTotals
    quiz_id: str | None = None
