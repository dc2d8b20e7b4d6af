# src/vote_vision/models/generation_job.py
"""Correlation records between prompts and provider-side generation tasks."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vote_vision.db.session import Base
from vote_vision.db.time import utcnow


class NormalizedStatus(str, enum.Enum):
    """Provider-agnostic generation status vocabulary."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NormalizedStatus.COMPLETE, NormalizedStatus.FAILED)


class GenerationJob(Base):
    """One submission of a prompt to a video generation provider.

    Rows are kept as an archive once terminal; a prompt has at most one
    non-terminal job at a time.
    """

    __tablename__ = "generation_job"
    __table_args__ = (
        Index("ix_generation_job_prompt_id", "prompt_id"),
        Index("ix_generation_job_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prompt_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("video_prompt.id", ondelete="CASCADE"),
        nullable=False,
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_job_id: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=NormalizedStatus.PENDING.value,
    )
    # Last raw status string reported by the provider, for diagnostics.
    provider_status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    result_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_terminal(self) -> bool:
        return NormalizedStatus(self.status).is_terminal
