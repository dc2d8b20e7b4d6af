# tests/services/test_lifecycle.py
"""Tests for the prompt lifecycle state machine."""

from collections.abc import Callable

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vote_vision.core.errors import InvalidTransitionError, ValidationError
from vote_vision.core.settings import Settings
from vote_vision.models import Prompt, PromptStatus, User
from vote_vision.services.lifecycle import (
    MISSING_ASSET_DETAIL,
    UNKNOWN_FAILURE_DETAIL,
    PromptLifecycle,
    can_transition,
)


@pytest.fixture
def lifecycle(db_session: Session, test_settings: Settings) -> PromptLifecycle:
    return PromptLifecycle(db_session, test_settings)


def _prompt_count(db_session: Session) -> int:
    return db_session.execute(select(func.count(Prompt.id))).scalar_one()


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        ("pending", "voting", True),
        ("voting", "generating", True),
        ("generating", "completed", True),
        ("generating", "failed", True),
        ("failed", "generating", True),
        ("voting", "completed", False),
        ("voting", "failed", False),
        ("completed", "generating", False),
        ("completed", "voting", False),
        ("generating", "voting", False),
        ("voting", "archived", False),
    ],
)
def test_can_transition(current: str, target: str, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_create_prompt_opens_voting(lifecycle: PromptLifecycle, db_session: Session, test_user: User) -> None:
    prompt = lifecycle.create_prompt(
        test_user,
        "  A drone shot over a foggy forest at sunrise  ",
        "Documentary",
        ["nature", " drone ", "nature"],
    )
    db_session.commit()

    assert prompt.status == PromptStatus.VOTING.value
    assert prompt.body == "A drone shot over a foggy forest at sunrise"
    assert prompt.tags == ["nature", "drone"]
    assert prompt.votes_up == 0
    assert prompt.votes_down == 0


def test_create_prompt_collects_all_violations(
    lifecycle: PromptLifecycle, db_session: Session, test_user: User
) -> None:
    with pytest.raises(ValidationError) as excinfo:
        lifecycle.create_prompt(test_user, "x" * 501, "Cooking", ["ok", "  "])

    assert len(excinfo.value.errors) == 3
    assert _prompt_count(db_session) == 0


def test_create_prompt_rejects_blank_body(lifecycle: PromptLifecycle, test_user: User) -> None:
    with pytest.raises(ValidationError, match="must not be empty"):
        lifecycle.create_prompt(test_user, "   ", "Music")


def test_create_prompt_accepts_maximum_length(lifecycle: PromptLifecycle, test_user: User) -> None:
    prompt = lifecycle.create_prompt(test_user, "y" * 500, "Music")
    assert len(prompt.body) == 500


def test_create_prompt_enforces_active_limit(
    lifecycle: PromptLifecycle,
    db_session: Session,
    test_user: User,
    make_prompt: Callable[..., Prompt],
) -> None:
    for _ in range(4):
        make_prompt(test_user)
    make_prompt(test_user, status=PromptStatus.GENERATING)
    make_prompt(test_user, status=PromptStatus.COMPLETED)

    with pytest.raises(ValidationError, match="active prompts"):
        lifecycle.create_prompt(test_user, "One prompt too many for this account", "Comedy")
    assert _prompt_count(db_session) == 6


def test_illegal_transition_leaves_prompt_untouched(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user)
    with pytest.raises(InvalidTransitionError) as excinfo:
        lifecycle.transition(prompt, PromptStatus.COMPLETED, asset_url="https://cdn.test/v.mp4")

    assert excinfo.value.current == "voting"
    assert excinfo.value.target == "completed"
    assert prompt.status == PromptStatus.VOTING.value
    assert prompt.asset_url is None


def test_threshold_not_met_below_minimum(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, votes_up=9)
    assert lifecycle.evaluate_threshold(prompt) is False
    assert prompt.status == PromptStatus.VOTING.value


def test_threshold_met_moves_to_generating(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, votes_up=10, votes_down=7)
    assert lifecycle.evaluate_threshold(prompt) is True
    assert prompt.status == PromptStatus.GENERATING.value


def test_threshold_respects_approval_ratio(
    db_session: Session,
    test_settings: Settings,
    test_user: User,
    make_prompt: Callable[..., Prompt],
) -> None:
    strict = PromptLifecycle(db_session, test_settings.model_copy(update={"min_approval_ratio": 0.8}))
    prompt = make_prompt(test_user, votes_up=10, votes_down=5)
    assert strict.evaluate_threshold(prompt) is False

    prompt.votes_up = 20
    assert strict.evaluate_threshold(prompt) is True


def test_threshold_ignores_prompts_not_voting(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.FAILED, votes_up=50)
    assert lifecycle.evaluate_threshold(prompt) is False
    assert prompt.status == PromptStatus.FAILED.value


def test_mark_completed_records_asset(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.GENERATING)
    lifecycle.mark_completed(prompt, "https://cdn.test/video.mp4")
    assert prompt.status == PromptStatus.COMPLETED.value
    assert prompt.asset_url == "https://cdn.test/video.mp4"


def test_mark_completed_without_asset_fails(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.GENERATING)
    lifecycle.mark_completed(prompt, "")
    assert prompt.status == PromptStatus.FAILED.value
    assert prompt.error_detail == MISSING_ASSET_DETAIL


def test_mark_failed_always_has_detail(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.GENERATING)
    lifecycle.mark_failed(prompt, "   ")
    assert prompt.status == PromptStatus.FAILED.value
    assert prompt.error_detail == UNKNOWN_FAILURE_DETAIL


def test_resubmit_failed_prompt(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.FAILED)
    lifecycle.resubmit(prompt)
    assert prompt.status == PromptStatus.GENERATING.value


def test_resubmit_cannot_bypass_vote_threshold(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.VOTING)
    with pytest.raises(InvalidTransitionError):
        lifecycle.resubmit(prompt)
    assert prompt.status == PromptStatus.VOTING.value


def test_completed_prompt_is_final(
    lifecycle: PromptLifecycle, test_user: User, make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.COMPLETED)
    with pytest.raises(InvalidTransitionError):
        lifecycle.resubmit(prompt)
