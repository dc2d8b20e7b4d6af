"""Weighted, idempotent vote ledger.

Each (voter, prompt) pair holds zero or one ballot. Casting the same direction
twice retracts the ballot, casting the opposite direction changes it in place.
Every cast runs as one transaction while holding the prompt's lock, so a tally
and its ballots are never observed half-applied and concurrent casts on the
same prompt cannot lose updates. Casts on different prompts do not contend.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock

from sqlalchemy.orm import Session

from vote_vision.core.errors import NotFoundError, ValidationError
from vote_vision.models.prompt import Prompt, PromptStatus
from vote_vision.models.user import User
from vote_vision.models.vote import PromptVote, VoteDirection
from vote_vision.repositories.prompt_repo import PromptRepository
from vote_vision.repositories.vote_repo import VoteRepository
from vote_vision.services.identity import IdentityResolver
from vote_vision.services.lifecycle import PromptLifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TallySnapshot:
    """Aggregate vote counts for a prompt after an operation."""

    prompt_id: int
    votes_up: int
    votes_down: int
    total_votes: int
    approval_percentage: int
    status: str
    my_vote: str | None = None
    generation_triggered: bool = False

    @classmethod
    def from_prompt(
        cls,
        prompt: Prompt,
        *,
        my_vote: str | None = None,
        generation_triggered: bool = False,
    ) -> TallySnapshot:
        return cls(
            prompt_id=prompt.id,
            votes_up=prompt.votes_up,
            votes_down=prompt.votes_down,
            total_votes=prompt.total_votes,
            approval_percentage=round(prompt.approval_ratio * 100),
            status=prompt.status,
            my_vote=my_vote,
            generation_triggered=generation_triggered,
        )


class PromptLocks:
    """Process-local lock per prompt id.

    An entry exists only while some caller holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[int, tuple[Lock, int]] = {}
        self._guard = Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, prompt_id: int) -> Iterator[None]:
        """Hold the lock for ``prompt_id`` for the duration of the block."""
        with self._guard:
            entry = self._locks.get(prompt_id)
            lock, users = entry if entry is not None else (Lock(), 0)
            self._locks[prompt_id] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                lock, users = self._locks[prompt_id]
                if users == 1:
                    del self._locks[prompt_id]
                else:
                    self._locks[prompt_id] = (lock, users - 1)


_PROMPT_LOCKS = PromptLocks()


def _adjust(prompt: Prompt, direction: str, delta: int) -> None:
    if direction == VoteDirection.UP.value:
        prompt.votes_up += delta
    else:
        prompt.votes_down += delta


class VoteLedger:
    """Record ballots and keep each prompt's cached tally consistent."""

    def __init__(
        self,
        session: Session,
        resolver: IdentityResolver,
        *,
        lifecycle: PromptLifecycle | None = None,
        locks: PromptLocks | None = None,
    ) -> None:
        self.session = session
        self.resolver = resolver
        self.lifecycle = lifecycle or PromptLifecycle(session)
        self.prompts = PromptRepository(session)
        self.votes = VoteRepository(session)
        self._locks = locks if locks is not None else _PROMPT_LOCKS

    def cast_vote(
        self,
        voter: User,
        prompt_id: int,
        direction: VoteDirection | str,
        *,
        settlement_ref: str | None = None,
    ) -> TallySnapshot:
        """Cast, change, or retract a voter's ballot on a prompt.

        Args:
            voter: Authenticated voter.
            prompt_id: Target prompt.
            direction: ``up`` or ``down``.
            settlement_ref: Optional external settlement reference for the ballot.

        Returns:
            The prompt's tally after the operation. ``generation_triggered`` is
            set when this ballot moved the prompt into ``generating``.

        Raises:
            ValidationError: If the direction is not ``up`` or ``down``.
            NotFoundError: If the prompt does not exist or is not open for voting.
        """
        try:
            new_direction = VoteDirection(direction).value
        except ValueError as err:
            raise ValidationError("Vote direction must be 'up' or 'down'") from err

        weight = self.resolver.weight_for(
            self.resolver.tier_for(voter.address, voter.weight_tier)
        )

        with self._locks.hold(prompt_id):
            try:
                prompt = self._get_open_prompt(prompt_id)
                existing = self.votes.get_vote(voter.id, prompt_id)
                my_vote = self._apply(
                    prompt, voter, existing, new_direction, weight, settlement_ref
                )
                triggered = self.lifecycle.evaluate_threshold(prompt)
                snapshot = TallySnapshot.from_prompt(
                    prompt, my_vote=my_vote, generation_triggered=triggered
                )
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        return snapshot

    def _get_open_prompt(self, prompt_id: int) -> Prompt:
        prompt = self.prompts.get_prompt(prompt_id, for_update=True)
        if prompt is None:
            raise NotFoundError("Prompt not found")
        if prompt.status != PromptStatus.VOTING.value:
            raise NotFoundError(f"Prompt is closed for voting (status: {prompt.status})")
        return prompt

    def _apply(
        self,
        prompt: Prompt,
        voter: User,
        existing: PromptVote | None,
        direction: str,
        weight: int,
        settlement_ref: str | None,
    ) -> str | None:
        if existing is None:
            self.votes.create_or_update_vote(
                voter_id=voter.id,
                prompt_id=prompt.id,
                direction=direction,
                weight=weight,
                settlement_ref=settlement_ref,
            )
            _adjust(prompt, direction, weight)
            logger.debug("Ballot cast on prompt %s: %s x%d", prompt.id, direction, weight)
            return direction

        if existing.direction == direction:
            _adjust(prompt, existing.direction, -existing.weight)
            self.votes.delete_vote(existing)
            logger.debug("Ballot retracted on prompt %s", prompt.id)
            return None

        _adjust(prompt, existing.direction, -existing.weight)
        self.votes.create_or_update_vote(
            voter_id=voter.id,
            prompt_id=prompt.id,
            direction=direction,
            weight=weight,
            settlement_ref=settlement_ref,
        )
        _adjust(prompt, direction, weight)
        logger.debug("Ballot changed on prompt %s to %s x%d", prompt.id, direction, weight)
        return direction

    def get_tally(self, prompt_id: int, voter: User | None = None) -> TallySnapshot:
        """Return the current tally for any prompt, regardless of status."""
        prompt = self.prompts.get_prompt(prompt_id)
        if prompt is None:
            raise NotFoundError("Prompt not found")
        my_vote = self.get_my_vote(voter, prompt_id) if voter is not None else None
        return TallySnapshot.from_prompt(prompt, my_vote=my_vote)

    def get_my_vote(self, voter: User, prompt_id: int) -> str | None:
        vote = self.votes.get_vote(voter.id, prompt_id)
        return vote.direction if vote else None

    def get_votes_for_prompt(self, prompt_id: int) -> list[PromptVote]:
        return self.votes.get_votes_for_prompt(prompt_id)
