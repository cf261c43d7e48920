"""JSON-file store (one document per collection, fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from collections.abc import Callable
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import ValidationError as PydanticValidationError

from devquiz_analytics.errors import StorageError
from devquiz_analytics.models.answer import AnswerRecord
from devquiz_analytics.models.common import Category, ExperienceLevel, Timestamp
from devquiz_analytics.models.milestone import Milestone, MilestoneType
from devquiz_analytics.models.skill_stats import CategoryStat, UserTotals
from devquiz_analytics.models.team_analytics import TeamAggregate, TeamAggregateKey
from devquiz_analytics.models.user_profile import UserProfile
from devquiz_analytics.storage.base import StatsStore, filter_milestones, sort_stats

logger = structlog.get_logger()

T = TypeVar("T")

PROFILES = "user_profiles"
SKILL_STATS = "skill_stats"
ANSWERS = "answers"
MILESTONES = "growth_milestones"
USERS = "users"
TEAM_ANALYTICS = "team_analytics"


class JsonStatsStore(StatsStore):
    """Durable store keeping each collection in ``<data_dir>/<name>.json``.

    Every access takes an flock on ``<name>.json.lock`` (shared for reads,
    exclusive for writes); writes go through a temp file and ``os.replace``
    so readers never see a half-written document.

    Args:
        data_dir: Directory holding the collection files. Created if missing.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    @contextmanager
    def _locked(self, name: str, mode: int):
        lock_path = self.data_dir / f"{name}.json.lock"
        with open(lock_path, "a") as lock_file:
            fcntl.flock(lock_file, mode)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _load(self, name: str) -> dict[str, Any]:
        path = self._path(name)
        if not path.exists():
            return {}
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error("store_document_corrupt", collection=name, error=str(e))
            raise StorageError(f"collection {name} is not valid JSON") from e

    def _dump(self, name: str, data: dict[str, Any]) -> None:
        tmp = tempfile.NamedTemporaryFile(
            "w", dir=self.data_dir, delete=False, suffix=".json", encoding="utf-8"
        )
        try:
            with tmp:
                json.dump(data, tmp, indent=2)
            os.replace(tmp.name, self._path(name))
        except Exception:
            Path(tmp.name).unlink(missing_ok=True)
            raise

    def _read(self, name: str) -> dict[str, Any]:
        with self._locked(name, fcntl.LOCK_SH):
            return self._load(name)

    def _update(self, name: str, fn: Callable[[dict[str, Any]], T]) -> T:
        """Run ``fn`` on the collection under an exclusive lock and persist it."""
        with self._locked(name, fcntl.LOCK_EX):
            data = self._load(name)
            result = fn(data)
            self._dump(name, data)
            return result

    @staticmethod
    def _parse(model: type[T], raw: Any) -> T:
        try:
            return model.model_validate(raw)
        except PydanticValidationError as e:
            raise StorageError(f"stored {model.__name__} is invalid: {e}") from e

    # Skill statistics

    def get_category_stat(self, user_id: str, category: Category) -> CategoryStat | None:
        raw = self._read(SKILL_STATS).get(f"{user_id}_{category.value}")
        return self._parse(CategoryStat, raw) if raw else None

    def put_category_stat(self, stat: CategoryStat) -> None:
        def _put(data: dict[str, Any]) -> None:
            data[stat.stat_id] = stat.model_dump(mode="json")

        self._update(SKILL_STATS, _put)

    def list_category_stats(self, user_id: str) -> list[CategoryStat]:
        stats = [
            self._parse(CategoryStat, raw)
            for raw in self._read(SKILL_STATS).values()
            if raw.get("user_id") == user_id
        ]
        return sort_stats(stats)

    # Answers

    def append_answer(self, record: AnswerRecord) -> None:
        def _append(data: dict[str, Any]) -> None:
            data.setdefault("answers", []).append(record.model_dump(mode="json"))

        self._update(ANSWERS, _append)

    def find_answer(self, user_id: str, quiz_id: str) -> AnswerRecord | None:
        for raw in self._read(ANSWERS).get("answers", []):
            if raw.get("user_id") == user_id and raw.get("quiz_id") == quiz_id:
                return self._parse(AnswerRecord, raw)
        return None

    def _all_answers(self, category: Category | None = None) -> list[AnswerRecord]:
        answers = [
            self._parse(AnswerRecord, raw)
            for raw in self._read(ANSWERS).get("answers", [])
        ]
        if category is not None:
            answers = [a for a in answers if a.category == category]
        return answers

    # Milestones

    def list_milestones(
        self,
        user_id: str,
        type: MilestoneType | None = None,
        category: Category | None = None,
    ) -> list[Milestone]:
        owned = [
            self._parse(Milestone, raw)
            for raw in self._read(MILESTONES).values()
            if raw.get("user_id") == user_id
        ]
        return filter_milestones(owned, type, category)

    def insert_milestone(self, milestone: Milestone) -> None:
        def _insert(data: dict[str, Any]) -> None:
            data[milestone.milestone_id] = milestone.model_dump(mode="json")

        self._update(MILESTONES, _insert)

    # Profiles

    def get_profile(self, user_id: str) -> UserProfile | None:
        raw = self._read(PROFILES).get(user_id)
        return self._parse(UserProfile, raw) if raw else None

    def put_profile(self, profile: UserProfile) -> None:
        def _put(data: dict[str, Any]) -> None:
            data[profile.user_id] = profile.model_dump(mode="json")

        self._update(PROFILES, _put)

    def list_profiles_by_level(self, level: ExperienceLevel) -> set[str]:
        return {
            uid
            for uid, raw in self._read(PROFILES).items()
            if raw.get("experience_level") == level.value
        }

    # Cumulative user totals

    def get_user_totals(self, user_id: str) -> UserTotals:
        raw = self._read(USERS).get(user_id)
        return self._parse(UserTotals, raw) if raw else UserTotals(user_id=user_id)

    def increment_user_totals(self, user_id: str, is_correct: bool) -> UserTotals:
        def _increment(data: dict[str, Any]) -> UserTotals:
            raw = data.get(user_id)
            current = self._parse(UserTotals, raw) if raw else UserTotals(user_id=user_id)
            updated = UserTotals(
                user_id=user_id,
                total_quizzes=current.total_quizzes + 1,
                correct_count=current.correct_count + (1 if is_correct else 0),
                updated_at=Timestamp.now(),
            )
            data[user_id] = updated.model_dump(mode="json")
            return updated

        return self._update(USERS, _increment)

    # Team aggregates

    def get_team_aggregate(self, key: TeamAggregateKey) -> TeamAggregate | None:
        raw = self._read(TEAM_ANALYTICS).get(key.analytics_id)
        return self._parse(TeamAggregate, raw) if raw else None

    def put_team_aggregate(self, key: TeamAggregateKey, record: TeamAggregate) -> None:
        def _put(data: dict[str, Any]) -> None:
            data[key.analytics_id] = record.model_dump(mode="json")

        self._update(TEAM_ANALYTICS, _put)
