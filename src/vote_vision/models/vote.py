# src/vote_vision/models/vote.py
"""Models capturing voting interactions on prompts."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from vote_vision.db.session import Base
from vote_vision.db.time import utcnow


class VoteDirection(str, enum.Enum):
    """Ballot direction."""

    UP = "up"
    DOWN = "down"


class PromptVote(Base):
    """Per-user ballot on a prompt.

    The weight is a snapshot taken when the ballot was last written and is not
    recomputed if the voter's tier changes afterwards.
    """

    __tablename__ = "prompt_vote"
    __table_args__ = (
        CheckConstraint("direction IN ('up', 'down')", name="ck_prompt_vote_direction"),
        CheckConstraint("weight >= 1", name="ck_prompt_vote_weight"),
        # At most one ballot per (voter, prompt).
        UniqueConstraint("voter_id", "prompt_id", name="uq_prompt_vote_voter_prompt"),
        Index("ix_prompt_vote_prompt_id", "prompt_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    prompt_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("video_prompt.id", ondelete="CASCADE"),
        nullable=False,
    )
    direction: Mapped[str] = mapped_column(String(4), nullable=False)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # Optional on-chain transaction hash; settlement itself happens elsewhere.
    settlement_ref: Mapped[str | None] = mapped_column(String(66), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
