# src/vote_vision/models/prompt.py
"""SQLAlchemy models for community video prompts."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vote_vision.db.session import Base
from vote_vision.db.time import utcnow


class PromptStatus(str, enum.Enum):
    """Lifecycle states for a prompt.

    ``pending`` only exists inside the creation transaction.
    """

    PENDING = "pending"
    VOTING = "voting"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_STATUSES = (
    PromptStatus.PENDING.value,
    PromptStatus.VOTING.value,
    PromptStatus.GENERATING.value,
)


class Prompt(Base):
    """The unit of community decision.

    Vote counters are a cache maintained exclusively by the vote ledger; the
    status column is only written by the prompt lifecycle.
    """

    __tablename__ = "video_prompt"
    __table_args__ = (
        Index("ix_video_prompt_status", "status"),
        Index("ix_video_prompt_category", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PromptStatus.PENDING.value,
    )
    asset_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_detail: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Weighted sums of the ballots currently on record.
    votes_up: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    votes_down: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def total_votes(self) -> int:
        """Return the combined weighted tally."""
        return self.votes_up + self.votes_down

    @property
    def approval_ratio(self) -> float:
        """Return ``votes_up / total_votes``, or 0.0 before any ballot."""
        total = self.total_votes
        return self.votes_up / total if total else 0.0
