"""Data access helpers for generation jobs."""
from __future__ import annotations

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from vote_vision.models.generation_job import GenerationJob, NormalizedStatus
from vote_vision.models.prompt import Prompt, PromptStatus

__all__ = ["GenerationJobRepository"]

_NON_TERMINAL = (NormalizedStatus.PENDING.value, NormalizedStatus.PROCESSING.value)


class GenerationJobRepository:
    """Thin wrapper around database access for generation jobs."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, *, prompt_id: int, provider: str, provider_job_id: str) -> GenerationJob:
        job = GenerationJob(
            prompt_id=prompt_id,
            provider=provider,
            provider_job_id=provider_job_id,
            status=NormalizedStatus.PENDING.value,
            attempts=0,
        )
        self.session.add(job)
        self.session.flush()
        return job

    def get(self, job_id: int) -> GenerationJob | None:
        return self.session.get(GenerationJob, job_id)

    def latest_for_prompt(self, prompt_id: int) -> GenerationJob | None:
        """Return the most recent job submitted for a prompt."""
        result = self.session.execute(
            select(GenerationJob)
            .where(GenerationJob.prompt_id == prompt_id)
            .order_by(GenerationJob.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    def active_jobs(self) -> list[GenerationJob]:
        """Return jobs that have not reached a terminal status."""
        result = self.session.execute(
            select(GenerationJob)
            .where(GenerationJob.status.in_(_NON_TERMINAL))
            .order_by(GenerationJob.id)
        )
        return list(result.scalars())

    def unsubmitted_prompt_ids(self) -> list[int]:
        """Return ids of ``generating`` prompts that have no job in flight."""
        in_flight = exists().where(
            GenerationJob.prompt_id == Prompt.id,
            GenerationJob.status.in_(_NON_TERMINAL),
        )
        result = self.session.execute(
            select(Prompt.id)
            .where(Prompt.status == PromptStatus.GENERATING.value, ~in_flight)
            .order_by(Prompt.id)
        )
        return list(result.scalars())
