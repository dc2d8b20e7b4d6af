"""Background polling of in-flight generation jobs.

Each tracked job gets its own asyncio task, so jobs are polled independently
and in parallel while the orchestrator keeps any single job to one poll at a
time.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from vote_vision.core.errors import VoteVisionError
from vote_vision.repositories.job_repo import GenerationJobRepository
from vote_vision.services.orchestrator import GenerationOrchestrator, get_orchestrator

logger = logging.getLogger(__name__)


class GenerationPoller:
    """Owns the polling tasks for generation jobs."""

    def __init__(self, orchestrator: GenerationOrchestrator | None = None) -> None:
        self.orchestrator = orchestrator or get_orchestrator()
        self._tasks: dict[int, asyncio.Task[None]] = {}

    @property
    def in_flight(self) -> list[int]:
        return [job_id for job_id, task in self._tasks.items() if not task.done()]

    def track(self, job_id: int) -> asyncio.Task[None]:
        """Start polling a job unless it is already being polled."""
        task = self._tasks.get(job_id)
        if task is None or task.done():
            task = asyncio.create_task(self._run(job_id), name=f"generation-poll-{job_id}")
            self._tasks[job_id] = task
        return task

    async def _run(self, job_id: int) -> None:
        try:
            status = await self.orchestrator.poll(job_id)
            logger.debug("Polling for job %s ended with %s", job_id, status.value)
        except VoteVisionError as e:
            logger.warning("GenerationPoller could not finish job %s: %s", job_id, e.detail)
        except SQLAlchemyError as e:
            logger.error("GenerationPoller database error on job %s: %s", job_id, e, exc_info=True)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.error(
                "GenerationPoller encountered data processing error on job %s: %s",
                job_id,
                e,
                exc_info=True,
            )
        finally:
            self._tasks.pop(job_id, None)

    async def start(self) -> None:
        """Resume work left unfinished by a previous process.

        Jobs still in flight are polled again. Prompts that entered
        ``generating`` but never got a job are submitted now.
        """
        with self.orchestrator.session_factory() as db:
            jobs = GenerationJobRepository(db)
            job_ids = [job.id for job in jobs.active_jobs()]
            prompt_ids = jobs.unsubmitted_prompt_ids()
        for job_id in job_ids:
            self.track(job_id)
        if job_ids:
            logger.info("Resumed polling for %d generation jobs", len(job_ids))

        for prompt_id in prompt_ids:
            await self._submit_orphan(prompt_id)

    async def _submit_orphan(self, prompt_id: int) -> None:
        with self.orchestrator.session_factory() as db:
            try:
                job = await self.orchestrator.start_generation(db, prompt_id)
            except VoteVisionError as e:
                logger.warning("Could not resubmit prompt %s on startup: %s", prompt_id, e.detail)
                return
            job_id = job.id if job is not None else None
        if job_id is None:
            return
        logger.info("Submitted prompt %s left without a generation job", prompt_id)
        self.track(job_id)

    async def stop(self) -> None:
        """Cancel outstanding polling tasks."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


class _PollerSingleton:
    """Singleton wrapper for GenerationPoller."""

    _instance: GenerationPoller | None = None

    @classmethod
    def get_instance(cls) -> GenerationPoller:
        if cls._instance is None:
            cls._instance = GenerationPoller()
        return cls._instance


def get_poller() -> GenerationPoller:
    """Return the process-wide generation poller."""
    return _PollerSingleton.get_instance()
