"""Parsing of ``/profile`` and ``/answer`` review-comment commands.

Profile commands produce a structured result in which every ``key=value``
pair is reported as applied, invalid (with a reason) or unrecognized, so the
caller decides what to do with each case.
"""

import re
from enum import StrEnum

import structlog
from pydantic import BaseModel, Field

from devquiz_analytics.models.common import Category, ExperienceLevel
from devquiz_analytics.models.user_profile import (
    MAX_CAREER_GOAL_LENGTH,
    MAX_FOCUS_AREAS,
    ProfileUpdate,
)

logger = structlog.get_logger()

PROFILE_PREFIX = "/profile"
ANSWER_PREFIX = "/answer"
# key=value or key="quoted value"
PARAM_PATTERN = re.compile(r'(\w+)=(?:"([^"]*)"|(\S+))')


class CommandType(StrEnum):
    PROFILE = "profile"
    ANSWER = "answer"


class ParamStatus(StrEnum):
    APPLIED = "applied"
    INVALID = "invalid"
    UNRECOGNIZED = "unrecognized"


class ParamResult(BaseModel):
    key: str
    value: str
    status: ParamStatus
    reason: str | None = None


class ProfileCommandResult(BaseModel):
    params: list[ParamResult] = Field(default_factory=list)
    update: ProfileUpdate = Field(default_factory=ProfileUpdate)

    def _with_status(self, status: ParamStatus) -> list[ParamResult]:
        return [p for p in self.params if p.status == status]

    @property
    def applied(self) -> list[ParamResult]:
        return self._with_status(ParamStatus.APPLIED)

    @property
    def invalid(self) -> list[ParamResult]:
        return self._with_status(ParamStatus.INVALID)

    @property
    def unrecognized(self) -> list[ParamResult]:
        return self._with_status(ParamStatus.UNRECOGNIZED)

    @property
    def is_valid(self) -> bool:
        return not self.invalid

    @property
    def is_help(self) -> bool:
        """A bare ``/profile`` with no parameters asks for usage help."""
        return not self.params


def detect_command_type(text: str) -> CommandType | None:
    trimmed = text.strip().lower()
    if trimmed.startswith(PROFILE_PREFIX):
        return CommandType.PROFILE
    if trimmed.startswith(ANSWER_PREFIX):
        return CommandType.ANSWER
    return None


def _parse_experience(value: str) -> ExperienceLevel:
    try:
        return ExperienceLevel(value.lower())
    except ValueError:
        raise ValueError("experience must be junior, mid or senior") from None


def _parse_years(value: str) -> float:
    try:
        years = float(value)
    except ValueError:
        raise ValueError("years must be a number") from None
    if years < 0:
        raise ValueError("years must not be negative")
    return years


def _parse_focus(value: str) -> list[Category]:
    names = [c.strip() for c in value.split(",") if c.strip()]
    if len(names) > MAX_FOCUS_AREAS:
        raise ValueError(f"at most {MAX_FOCUS_AREAS} focus areas are allowed")
    categories = []
    for name in names:
        try:
            category = Category(name.lower())
        except ValueError:
            raise ValueError(f"unknown category: {name}") from None
        if category in categories:
            raise ValueError(f"duplicate category: {name}")
        categories.append(category)
    return categories


def _parse_goal(value: str) -> str:
    if len(value) > MAX_CAREER_GOAL_LENGTH:
        raise ValueError(f"goal must be at most {MAX_CAREER_GOAL_LENGTH} characters")
    return value


# key alias -> (ProfileUpdate field, value parser)
_PROFILE_PARAMS = {
    "experience": ("experience_level", _parse_experience),
    "exp": ("experience_level", _parse_experience),
    "years": ("years_of_experience", _parse_years),
    "year": ("years_of_experience", _parse_years),
    "focus": ("focus_areas", _parse_focus),
    "goal": ("career_goal", _parse_goal),
}


def parse_profile_command(text: str) -> ProfileCommandResult | None:
    """Parse ``/profile experience=mid years=3 focus=security,logic goal="..."``.

    Returns:
        None if the text is not a profile command, otherwise the per-parameter
        result and a ProfileUpdate holding only the applied values.
    """
    trimmed = text.strip()
    if not trimmed.lower().startswith(PROFILE_PREFIX):
        return None

    params_text = trimmed[len(PROFILE_PREFIX):].strip()
    results: list[ParamResult] = []
    values: dict[str, object] = {}

    for match in PARAM_PATTERN.finditer(params_text):
        key = match.group(1)
        value = match.group(2) if match.group(2) is not None else match.group(3)
        spec = _PROFILE_PARAMS.get(key.lower())
        if spec is None:
            results.append(ParamResult(key=key, value=value, status=ParamStatus.UNRECOGNIZED))
            continue

        field, parse = spec
        try:
            values[field] = parse(value)
        except ValueError as e:
            logger.warning("profile_param_invalid", key=key, value=value, reason=str(e))
            results.append(ParamResult(
                key=key, value=value, status=ParamStatus.INVALID, reason=str(e)
            ))
            continue
        results.append(ParamResult(key=key, value=value, status=ParamStatus.APPLIED))

    command = ProfileCommandResult(params=results, update=ProfileUpdate(**values))
    logger.info(
        "profile_command_parsed",
        applied=len(command.applied),
        invalid=len(command.invalid),
        unrecognized=len(command.unrecognized),
    )
    return command


def parse_answer_command(text: str) -> int | None:
    """Parse ``/answer N`` (N in 1-4) into a 0-based option index, or None."""
    trimmed = text.strip()
    if not trimmed.lower().startswith(ANSWER_PREFIX):
        return None

    answer_text = trimmed[len(ANSWER_PREFIX):].strip()
    match = re.match(r"\d+", answer_text)
    if not match:
        logger.warning("answer_index_invalid", answer_text=answer_text)
        return None
    index = int(match.group(0))
    if not 1 <= index <= 4:
        logger.warning("answer_index_invalid", answer_text=answer_text)
        return None
    return index - 1
