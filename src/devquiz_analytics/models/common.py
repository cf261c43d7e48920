"""Shared enumerations and the timestamp pair used by every record."""

import re
import time
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Category(StrEnum):
    """Quiz subject tags, in their canonical order."""

    BUG_FIX = "bug_fix"
    PERFORMANCE = "performance"
    REFACTORING = "refactoring"
    SECURITY = "security"
    LOGIC = "logic"


ALL_CATEGORIES: list[Category] = list(Category)


class Difficulty(StrEnum):
    """Quiz difficulty with a 1-3 numeric mapping used for averaging."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def numeric(self) -> int:
        return _DIFFICULTY_VALUES[self]

    def harder(self) -> "Difficulty":
        """One step up, clamped at hard."""
        if self == Difficulty.EASY:
            return Difficulty.MEDIUM
        return Difficulty.HARD

    def easier(self) -> "Difficulty":
        """One step down, clamped at easy."""
        if self == Difficulty.HARD:
            return Difficulty.MEDIUM
        return Difficulty.EASY


_DIFFICULTY_VALUES = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
}


class ExperienceLevel(StrEnum):
    """Developer experience levels, ordered junior < mid < senior."""

    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"

    @property
    def base_difficulty(self) -> Difficulty:
        """Starting quiz difficulty for this level."""
        if self == ExperienceLevel.JUNIOR:
            return Difficulty.EASY
        elif self == ExperienceLevel.SENIOR:
            return Difficulty.HARD
        return Difficulty.MEDIUM


class Timestamp(BaseModel):
    """A (seconds, nanoseconds) pair since the Unix epoch."""

    seconds: int
    nanoseconds: int = Field(default=0, ge=0, lt=1_000_000_000)

    @classmethod
    def now(cls) -> "Timestamp":
        ns = time.time_ns()
        return cls(seconds=ns // 1_000_000_000, nanoseconds=ns % 1_000_000_000)

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        """Convert a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        whole = int(value.replace(microsecond=0).timestamp())
        return cls(seconds=whole, nanoseconds=value.microsecond * 1000)

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.seconds, tz=UTC).replace(
            microsecond=self.nanoseconds // 1000
        )

    def as_float(self) -> float:
        return self.seconds + self.nanoseconds / 1e9

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.seconds, self.nanoseconds)


PERIOD_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def period_bounds(period: str) -> tuple[Timestamp, Timestamp]:
    """Return [start, end) timestamps for a ``YYYY-MM`` calendar month (UTC).

    Raises:
        ValueError: If ``period`` is not a valid ``YYYY-MM`` string.
    """
    match = PERIOD_PATTERN.match(period)
    if not match:
        raise ValueError(f"period must be in YYYY-MM format: {period!r}")
    year, month = int(match.group(1)), int(match.group(2))
    start = datetime(year, month, 1, tzinfo=UTC)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(year, month + 1, 1, tzinfo=UTC)
    return Timestamp.from_datetime(start), Timestamp.from_datetime(end)
