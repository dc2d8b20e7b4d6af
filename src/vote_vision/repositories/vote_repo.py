"""Data access helpers for working with ballots."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from vote_vision.models.vote import PromptVote

__all__ = ["VoteRepository"]


class VoteRepository:
    """Thin wrapper around database access for ballots."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_vote(self, voter_id: int, prompt_id: int) -> PromptVote | None:
        """Return the ballot a voter holds on a prompt, if any."""
        result = self.session.execute(
            select(PromptVote).where(
                PromptVote.voter_id == voter_id,
                PromptVote.prompt_id == prompt_id,
            )
        )
        return result.scalars().first()

    def create_or_update_vote(
        self,
        *,
        voter_id: int,
        prompt_id: int,
        direction: str,
        weight: int,
        settlement_ref: str | None = None,
    ) -> PromptVote:
        """Write the single ballot for (voter, prompt), updating it in place if present."""
        vote = self.get_vote(voter_id, prompt_id)
        if vote is None:
            vote = PromptVote(
                voter_id=voter_id,
                prompt_id=prompt_id,
                direction=direction,
                weight=weight,
                settlement_ref=settlement_ref,
            )
            self.session.add(vote)
        else:
            vote.direction = direction
            vote.weight = weight
            if settlement_ref is not None:
                vote.settlement_ref = settlement_ref
        self.session.flush()
        return vote

    def delete_vote(self, vote: PromptVote) -> None:
        self.session.delete(vote)
        self.session.flush()

    def get_votes_for_prompt(self, prompt_id: int) -> list[PromptVote]:
        """Return all ballots on a prompt in cast order."""
        result = self.session.execute(
            select(PromptVote)
            .where(PromptVote.prompt_id == prompt_id)
            .order_by(PromptVote.id)
        )
        return list(result.scalars())
