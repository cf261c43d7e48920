"""REST API routes for profiles, skills, recommendations and team analytics."""

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from devquiz_analytics.commands.parser import (
    CommandType,
    detect_command_type,
    parse_answer_command,
    parse_profile_command,
)
from devquiz_analytics.errors import ValidationError
from devquiz_analytics.models.answer import AnswerSubmission
from devquiz_analytics.models.common import Category, ExperienceLevel
from devquiz_analytics.models.user_profile import ProfileUpdate
from devquiz_analytics.services.container import get_services

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

MIN_ATTEMPTS_FOR_RANKING = 3
RANKING_SIZE = 5


class CommandRequest(BaseModel):
    text: str


class TeamCalculateRequest(BaseModel):
    period: str
    experience_level: ExperienceLevel | None = None
    category: Category | None = None


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.put("/users/{user_id}/profile")
def put_profile(user_id: str, update: ProfileUpdate) -> dict:
    """Create or partially update a profile."""
    logger.info("user_profile_update_requested", user_id=user_id)
    profile, is_new = get_services().profiles.upsert(user_id, update)
    return {"profile": profile.model_dump(mode="json"), "is_new": is_new}


@router.get("/users/{user_id}/profile")
def get_profile(user_id: str) -> dict:
    return get_services().profiles.get(user_id).model_dump(mode="json")


@router.get("/users/{user_id}/skills")
def get_skills(user_id: str) -> dict:
    """All category stats plus the weakest and strongest ranked categories."""
    stats = get_services().store.list_category_stats(user_id)
    ranked = [s for s in stats if s.total_quizzes >= MIN_ATTEMPTS_FOR_RANKING]
    weak = sorted(ranked, key=lambda s: s.correct_rate)[:RANKING_SIZE]
    strong = sorted(ranked, key=lambda s: s.correct_rate, reverse=True)[:RANKING_SIZE]
    return {
        "skills": [s.model_dump(mode="json") for s in stats],
        "weak_areas": [s.model_dump(mode="json") for s in weak],
        "strong_areas": [s.model_dump(mode="json") for s in strong],
    }


@router.get("/users/{user_id}/growth")
def get_growth(user_id: str) -> dict:
    milestones = get_services().store.list_milestones(user_id)
    return {
        "milestones": [m.model_dump(mode="json") for m in milestones],
        "total_milestones": len(milestones),
    }


@router.get("/users/{user_id}/recommendations")
def get_recommendations(user_id: str) -> dict:
    services = get_services()
    profile = services.profiles.find(user_id)
    stats = services.store.list_category_stats(user_id)
    return services.recommender.recommend(profile, stats).model_dump(mode="json")


@router.get("/users/{user_id}/next-quiz")
def get_next_quiz(user_id: str) -> dict:
    """Category and difficulty for the next quiz to generate for this user."""
    services = get_services()
    profile = services.profiles.find(user_id)
    stats = services.store.list_category_stats(user_id)
    return services.recommender.next_quiz(profile, stats).model_dump(mode="json")


@router.post("/users/{user_id}/answers", status_code=201)
def post_answer(user_id: str, submission: AnswerSubmission) -> dict:
    result = get_services().answers.submit(user_id, submission)
    return result.model_dump(mode="json")


@router.post("/users/{user_id}/commands")
def post_command(user_id: str, request: CommandRequest) -> dict:
    """Apply a ``/profile`` comment command; ``/answer`` only reports the parsed index."""
    command_type = detect_command_type(request.text)
    if command_type is None:
        raise HTTPException(status_code=400, detail="Not a recognized command")

    if command_type == CommandType.ANSWER:
        index = parse_answer_command(request.text)
        if index is None:
            raise ValidationError("Answer must be a number from 1 to 4")
        return {"command": command_type.value, "answer_index": index}

    command = parse_profile_command(request.text)
    body = {
        "command": command_type.value,
        "params": [p.model_dump(mode="json") for p in command.params],
    }
    if command.is_help:
        return {**body, "help": True}
    profile, is_new = get_services().profiles.apply_command(user_id, command)
    return {**body, "profile": profile.model_dump(mode="json"), "is_new": is_new}


@router.get("/analytics/team")
def get_team_analytics(
    period: str,
    experience_level: ExperienceLevel | None = None,
    category: Category | None = None,
) -> dict:
    record = get_services().aggregator.get(period, experience_level, category)
    return record.model_dump(mode="json")


@router.get("/analytics/benchmarks")
def get_benchmarks(
    period: str,
    level: ExperienceLevel | None = None,
    category: Category | None = None,
) -> dict:
    return get_services().aggregator.benchmarks(period, level, category).model_dump(mode="json")


@router.post("/analytics/team/calculate", status_code=201)
def calculate_team_analytics(request: TeamCalculateRequest) -> dict:
    """Recompute and store the aggregate for a key (batch trigger)."""
    logger.info(
        "team_analytics_calculation_requested",
        period=request.period,
        experience_level=request.experience_level,
        category=request.category,
    )
    record = get_services().aggregator.aggregate(
        request.period, request.experience_level, request.category
    )
    return record.model_dump(mode="json")
