# tests/test_db_models.py
from collections.abc import Callable

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vote_vision.models import GenerationJob, NormalizedStatus, Prompt, PromptVote, User


def test_prompt_tally_properties(make_user: Callable[..., User], make_prompt: Callable[..., Prompt]) -> None:
    prompt = make_prompt(make_user(), votes_up=3, votes_down=1)
    assert prompt.total_votes == 4
    assert prompt.approval_ratio == 0.75


def test_prompt_without_votes_has_zero_ratio(
    make_user: Callable[..., User], make_prompt: Callable[..., Prompt]
) -> None:
    prompt = make_prompt(make_user())
    assert prompt.total_votes == 0
    assert prompt.approval_ratio == 0.0


def test_one_ballot_per_voter_and_prompt(
    db_session: Session,
    make_user: Callable[..., User],
    make_prompt: Callable[..., Prompt],
) -> None:
    voter = make_user()
    prompt = make_prompt(make_user())
    db_session.add(PromptVote(voter_id=voter.id, prompt_id=prompt.id, direction="up", weight=1))
    db_session.commit()

    db_session.add(PromptVote(voter_id=voter.id, prompt_id=prompt.id, direction="down", weight=1))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_user_address_is_unique(db_session: Session, make_user: Callable[..., User]) -> None:
    make_user("ab" * 32)
    db_session.add(User(address="ab" * 32, vote_balance=10, weight_tier="basic"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_generation_job_terminal_flag(
    db_session: Session,
    make_user: Callable[..., User],
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = make_prompt(make_user())
    job = GenerationJob(prompt_id=prompt.id, provider="runway", provider_job_id="task-1")
    db_session.add(job)
    db_session.commit()

    assert job.status == NormalizedStatus.PENDING.value
    assert job.attempts == 0
    assert not job.is_terminal
    job.status = NormalizedStatus.COMPLETE.value
    assert job.is_terminal
