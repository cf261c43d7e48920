"""Profile creation and partial-merge updates."""

from collections.abc import Callable
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from devquiz_analytics.commands.parser import ProfileCommandResult
from devquiz_analytics.errors import NotFoundError, ValidationError
from devquiz_analytics.models.common import ExperienceLevel, Timestamp
from devquiz_analytics.models.user_profile import ProfileUpdate, UserProfile
from devquiz_analytics.storage.base import StatsStore

logger = structlog.get_logger()

DEFAULT_EXPERIENCE_LEVEL = ExperienceLevel.MID


class ProfileService:
    """Creates profiles on first use and merges later updates into them.

    Fields left out of an update keep their stored value. Input is fully
    validated before anything is written.

    Args:
        store: Stats storage.
        clock: Source of created_at / updated_at.
    """

    def __init__(self, store: StatsStore, clock: Callable[[], Timestamp] = Timestamp.now):
        self.store = store
        self.clock = clock

    def get(self, user_id: str) -> UserProfile:
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise NotFoundError("User profile")
        return profile

    def find(self, user_id: str) -> UserProfile | None:
        return self.store.get_profile(user_id)

    def upsert(
        self, user_id: str, update: ProfileUpdate | dict[str, Any]
    ) -> tuple[UserProfile, bool]:
        """Create or partially update a profile.

        Returns:
            The stored profile and whether it was newly created.

        Raises:
            ValidationError: If the input or the merged profile is invalid.
        """
        try:
            if not isinstance(update, ProfileUpdate):
                update = ProfileUpdate.model_validate(update)
            changes = update.model_dump(exclude_none=True)

            now = self.clock()
            existing = self.store.get_profile(user_id)
            if existing is None:
                data = {
                    "user_id": user_id,
                    "experience_level": DEFAULT_EXPERIENCE_LEVEL,
                    "created_at": now,
                    **changes,
                    "updated_at": now,
                }
            else:
                data = {**existing.model_dump(), **changes, "updated_at": now}
            profile = UserProfile.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid profile data",
                details=e.errors(include_url=False, include_context=False),
            ) from e

        self.store.put_profile(profile)
        is_new = existing is None
        logger.info(
            "user_profile_created" if is_new else "user_profile_updated",
            user_id=user_id,
            fields=sorted(changes),
        )
        return profile, is_new

    def apply_command(
        self, user_id: str, command: ProfileCommandResult
    ) -> tuple[UserProfile, bool]:
        """Apply a parsed ``/profile`` command; rejected as a whole if any value is invalid."""
        if not command.is_valid:
            raise ValidationError(
                "Invalid profile command",
                details=[
                    {"key": p.key, "value": p.value, "reason": p.reason}
                    for p in command.invalid
                ],
            )
        if command.unrecognized:
            logger.warning(
                "profile_command_unrecognized_keys",
                user_id=user_id,
                keys=[p.key for p in command.unrecognized],
            )
        return self.upsert(user_id, command.update)
