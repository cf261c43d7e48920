"""Tests for profile creation and partial updates."""

import pytest

from devquiz_analytics.commands.parser import parse_profile_command
from devquiz_analytics.errors import NotFoundError, ValidationError
from devquiz_analytics.models.common import Category, ExperienceLevel
from devquiz_analytics.models.user_profile import ProfileUpdate
from devquiz_analytics.services.profile_service import ProfileService


@pytest.fixture
def profiles(store, clock):
    return ProfileService(store, clock)


def test_get_missing_profile(profiles):
    with pytest.raises(NotFoundError) as exc_info:
        profiles.get("nobody")
    assert exc_info.value.message == "User profile not found"
    assert profiles.find("nobody") is None


def test_create_with_defaults(profiles, clock):
    profile, is_new = profiles.upsert("alice", {})
    assert is_new
    assert profile.experience_level == ExperienceLevel.MID
    assert profile.years_of_experience == 0
    assert profile.focus_areas == []
    assert profile.created_at == clock()
    assert profile.updated_at == clock()


def test_create_with_values(profiles):
    profile, _ = profiles.upsert(
        "alice",
        ProfileUpdate(
            experience_level=ExperienceLevel.JUNIOR,
            years_of_experience=1,
            focus_areas=[Category.SECURITY],
        ),
    )
    assert profile.experience_level == ExperienceLevel.JUNIOR
    assert profiles.get("alice") == profile


def test_partial_update_keeps_other_fields(profiles, clock):
    created, _ = profiles.upsert(
        "alice",
        {"experience_level": "senior", "focus_areas": ["logic"], "career_goal": "Staff engineer"},
    )
    clock.advance(days=2)
    updated, is_new = profiles.upsert("alice", {"years_of_experience": 9})

    assert not is_new
    assert updated.experience_level == ExperienceLevel.SENIOR
    assert updated.focus_areas == [Category.LOGIC]
    assert updated.career_goal == "Staff engineer"
    assert updated.years_of_experience == 9
    assert updated.created_at == created.created_at
    assert updated.updated_at == clock()


@pytest.mark.parametrize(
    "data",
    [
        {"experience_level": "principal"},
        {"years_of_experience": -2},
        {"focus_areas": ["security", "security"]},
        {"focus_areas": ["bug_fix", "performance", "refactoring", "security", "logic", "logic"]},
        {"career_goal": "x" * 501},
        {"self_assessment": {"logic": 6}},
    ],
)
def test_invalid_input_rejected_without_write(profiles, store, data):
    with pytest.raises(ValidationError) as exc_info:
        profiles.upsert("alice", data)
    assert exc_info.value.status_code == 400
    assert exc_info.value.details
    assert store.get_profile("alice") is None


def test_apply_command(profiles):
    command = parse_profile_command("/profile experience=junior focus=bug_fix,logic unknown=1")
    profile, is_new = profiles.apply_command("alice", command)
    assert is_new
    assert profile.experience_level == ExperienceLevel.JUNIOR
    assert profile.focus_areas == [Category.BUG_FIX, Category.LOGIC]


def test_apply_command_with_invalid_value_writes_nothing(profiles, store):
    command = parse_profile_command("/profile experience=mid years=lots")
    with pytest.raises(ValidationError) as exc_info:
        profiles.apply_command("alice", command)
    assert exc_info.value.details == [
        {"key": "years", "value": "lots", "reason": "years must be a number"}
    ]
    assert store.get_profile("alice") is None
