"""Data access helpers for working with prompts."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vote_vision.models.prompt import ACTIVE_STATUSES, Prompt, PromptStatus

__all__ = ["PromptRepository"]

ALL_CATEGORIES = "all"


class PromptRepository:
    """Thin wrapper around database access for prompt entities.

    Status and tally columns are written by the lifecycle and ledger services;
    this class only persists what they hand it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_prompt(self, prompt_id: int, *, for_update: bool = False) -> Prompt | None:
        """Return a prompt by identifier, optionally locking its row."""
        stmt = select(Prompt).where(Prompt.id == prompt_id)
        if for_update:
            # Ignored by SQLite; row-level lock on PostgreSQL.
            stmt = stmt.with_for_update()
        result = self.session.execute(stmt)
        return result.scalars().first()

    def get_prompts(
        self,
        status: str | None = None,
        category: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Prompt]:
        """Return prompts newest first, filtered by status and category."""
        stmt = select(Prompt)
        if status:
            stmt = stmt.where(Prompt.status == status)
        if category and category != ALL_CATEGORIES:
            stmt = stmt.where(Prompt.category == category)
        stmt = stmt.order_by(Prompt.created_at.desc(), Prompt.id.desc()).limit(limit).offset(offset)
        return list(self.session.execute(stmt).scalars())

    def create_prompt(
        self,
        *,
        user_id: int,
        body: str,
        category: str,
        tags: list[str],
    ) -> Prompt:
        """Insert a new prompt in the ``pending`` state."""
        prompt = Prompt(
            user_id=user_id,
            body=body,
            category=category,
            tags=list(tags),
            status=PromptStatus.PENDING.value,
            votes_up=0,
            votes_down=0,
        )
        self.session.add(prompt)
        self.session.flush()
        return prompt

    def update_prompt_status(
        self,
        prompt: Prompt,
        status: str,
        *,
        asset_url: str | None = None,
        error_detail: str | None = None,
    ) -> Prompt:
        """Persist a status change decided by the lifecycle."""
        prompt.status = status
        prompt.asset_url = asset_url
        prompt.error_detail = error_detail
        self.session.flush()
        return prompt

    def count_active_for_user(self, user_id: int) -> int:
        """Return how many of a user's prompts have not reached a terminal state."""
        stmt = select(func.count(Prompt.id)).where(
            Prompt.user_id == user_id,
            Prompt.status.in_(ACTIVE_STATUSES),
        )
        return int(self.session.execute(stmt).scalar_one())
