"""Generation orchestration across provider adapters.

The orchestrator validates a request, submits it through the single
configured :class:`ProviderAdapter`, and drives a bounded polling loop until
the job reaches a terminal status. Outcomes are fed back into
:class:`PromptLifecycle`; the orchestrator never writes prompt status itself.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Awaitable, Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from vote_vision.core.errors import (
    GenerationTimeoutError,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from vote_vision.core.settings import Settings, settings
from vote_vision.db.session import SessionLocal
from vote_vision.db.time import utcnow
from vote_vision.models.generation_job import GenerationJob, NormalizedStatus
from vote_vision.models.prompt import Prompt, PromptStatus
from vote_vision.repositories.job_repo import GenerationJobRepository
from vote_vision.repositories.prompt_repo import PromptRepository
from vote_vision.services.lifecycle import PromptLifecycle
from vote_vision.services.providers import (
    GenerationRequest,
    ProviderAdapter,
    ProviderStatus,
    ProviderSubmission,
    build_adapter,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class GenerationOptions:
    """Caller overrides for a generation request; unset fields use defaults."""

    duration: int | None = None
    aspect_ratio: str | None = None
    style: str | None = None
    model: str | None = None


class GenerationOrchestrator:
    """Submit prompts to the configured provider and track jobs to completion."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        *,
        session_factory: SessionFactory = SessionLocal,
        config: Settings | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.adapter = adapter
        self.config = config or settings
        self.session_factory = session_factory
        self._sleep = sleep
        # Entries disappear once no poll holds or awaits the lock.
        self._job_locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def provider_name(self) -> str:
        return self.adapter.name

    def build_request(
        self, prompt: Prompt, options: GenerationOptions | None = None
    ) -> GenerationRequest:
        """Build a provider-agnostic request, filling unspecified fields with defaults."""
        options = options or GenerationOptions()
        return GenerationRequest(
            prompt=prompt.body,
            duration=(
                options.duration
                if options.duration is not None
                else self.adapter.default_duration or self.config.generation_default_duration
            ),
            aspect_ratio=options.aspect_ratio or self.config.generation_default_aspect_ratio,
            style=options.style or self.adapter.default_style,
            model=options.model or self.adapter.model,
            category=prompt.category,
            tags=tuple(prompt.tags or ()),
        )

    def validate_request(self, request: GenerationRequest) -> None:
        """Reject requests no provider should see.

        Raises:
            ValidationError: Listing every violated rule.
        """
        errors: list[str] = []
        min_length = self.config.generation_min_prompt_length
        if len(request.prompt.strip()) < min_length:
            errors.append(f"Prompt must be at least {min_length} characters long")

        low, high = self.config.generation_min_duration, self.config.generation_max_duration
        if not low <= request.duration <= high:
            errors.append(f"Duration must be between {low} and {high} seconds")

        ratios = self.config.generation_aspect_ratios
        if request.aspect_ratio not in ratios:
            errors.append(f"Aspect ratio must be one of: {', '.join(ratios)}")

        models = self.adapter.supported_models()
        if request.model and models and request.model not in models:
            errors.append(f"Model must be one of: {', '.join(models)}")

        if errors:
            raise ValidationError("; ".join(errors), errors)

    async def submit(
        self,
        db: Session,
        prompt: Prompt,
        options: GenerationOptions | None = None,
    ) -> GenerationJob:
        """Submit a prompt to the provider and record the job in ``db``.

        A prompt that already has a job in flight gets that job back instead of
        a second submission. The caller commits.

        Raises:
            ValidationError: Before any network call, if the request is invalid.
            ProviderError: If the provider is misconfigured, unreachable, or
                rejected the submission.
        """
        jobs = GenerationJobRepository(db)
        existing = jobs.latest_for_prompt(prompt.id)
        if existing is not None and not existing.is_terminal:
            return existing

        request = self.build_request(prompt, options)
        self.validate_request(request)
        submission = await self._submit_with_retry(request)
        job = jobs.create(
            prompt_id=prompt.id,
            provider=self.adapter.name,
            provider_job_id=submission.provider_job_id,
        )
        job.submitted_at = submission.submitted_at
        logger.info(
            "Submitted prompt %s to %s as job %s",
            prompt.id,
            self.adapter.name,
            submission.provider_job_id,
        )
        return job

    async def _submit_with_retry(self, request: GenerationRequest) -> ProviderSubmission:
        try:
            return await self.adapter.submit(request)
        except ProviderError as err:
            if not err.retryable:
                raise
            logger.warning("Retrying %s submission once after: %s", self.adapter.name, err)
        return await self.adapter.submit(request)

    async def start_generation(
        self,
        db: Session,
        prompt_id: int,
        options: GenerationOptions | None = None,
        *,
        raise_errors: bool = False,
    ) -> GenerationJob | None:
        """Submit a prompt that has just entered ``generating``.

        A rejected submission moves the prompt to ``failed`` with the error
        detail preserved. With ``raise_errors`` the error is re-raised after
        being recorded; otherwise None is returned.
        """
        prompt = PromptRepository(db).get_prompt(prompt_id)
        if prompt is None:
            raise NotFoundError("Prompt not found")
        if prompt.status != PromptStatus.GENERATING.value:
            raise NotFoundError(f"Prompt is not awaiting generation (status: {prompt.status})")

        try:
            job = await self.submit(db, prompt, options)
            db.commit()
            return job
        except (ValidationError, ProviderError) as err:
            db.rollback()
            logger.warning("Generation for prompt %s not submitted: %s", prompt_id, err.detail)
            prompt = PromptRepository(db).get_prompt(prompt_id)
            PromptLifecycle(db, self.config).mark_failed(prompt, err.detail)
            db.commit()
            if raise_errors:
                raise
            return None

    def _job_lock(self, job_id: int) -> asyncio.Lock:
        lock = self._job_locks.get(job_id)
        if lock is None:
            lock = self._job_locks[job_id] = asyncio.Lock()
        return lock

    async def poll(self, job_id: int) -> NormalizedStatus:
        """Poll a job until it is terminal or the attempt budget runs out.

        Only one poll per job runs at a time; a second caller waits and then
        sees the terminal status. Exhausting the budget fails the job with a
        timeout detail.
        """
        async with self._job_lock(job_id):
            return await self._poll_locked(job_id)

    async def _poll_locked(self, job_id: int) -> NormalizedStatus:
        with self.session_factory() as db:
            job = GenerationJobRepository(db).get(job_id)
            if job is None:
                raise NotFoundError(f"Generation job {job_id} not found")
            if job.is_terminal:
                return NormalizedStatus(job.status)
            provider_job_id = job.provider_job_id
            attempts_used = job.attempts

        max_attempts = self.config.generation_max_poll_attempts
        interval = max(0.0, float(self.config.generation_poll_interval_seconds))

        while attempts_used < max_attempts:
            attempts_used += 1
            try:
                observed = await self.adapter.check_status(provider_job_id)
            except ProviderError as err:
                if not err.retryable:
                    self._finish(job_id, NormalizedStatus.FAILED, error_detail=err.detail)
                    return NormalizedStatus.FAILED
                logger.warning("Status check %d for job %s failed: %s", attempts_used, job_id, err)
                self._record_attempt(job_id, None)
            else:
                if observed.normalized.is_terminal:
                    return self._finish_from(job_id, observed)
                self._record_attempt(job_id, observed)

            if attempts_used < max_attempts and interval:
                await self._sleep(interval)

        timeout = GenerationTimeoutError(
            f"Generation timed out after {max_attempts} status checks"
        )
        logger.warning("Job %s exhausted its polling budget", job_id)
        self._finish(
            job_id, NormalizedStatus.FAILED, error_detail=timeout.detail, count_attempt=False
        )
        return NormalizedStatus.FAILED

    def _record_attempt(self, job_id: int, observed: ProviderStatus | None) -> None:
        with self.session_factory() as db:
            job = GenerationJobRepository(db).get(job_id)
            if job is None:
                return
            job.attempts += 1
            if observed is not None:
                job.status = observed.normalized.value
                job.provider_status = observed.provider_status
            db.commit()

    def _finish_from(self, job_id: int, observed: ProviderStatus) -> NormalizedStatus:
        if observed.normalized is NormalizedStatus.COMPLETE:
            return self._finish(
                job_id,
                NormalizedStatus.COMPLETE,
                result_url=observed.result_url,
                provider_status=observed.provider_status,
                completed_at=observed.completed_at,
            )
        return self._finish(
            job_id,
            NormalizedStatus.FAILED,
            error_detail=observed.error_detail
            or f"{self.adapter.name} reported status {observed.provider_status}",
            provider_status=observed.provider_status,
            completed_at=observed.completed_at,
        )

    def _finish(
        self,
        job_id: int,
        status: NormalizedStatus,
        *,
        result_url: str | None = None,
        error_detail: str | None = None,
        provider_status: str | None = None,
        completed_at: datetime | None = None,
        count_attempt: bool = True,
    ) -> NormalizedStatus:
        """Record a terminal job outcome and the matching prompt transition atomically."""
        with self.session_factory() as db:
            try:
                job = GenerationJobRepository(db).get(job_id)
                if job is None:
                    raise NotFoundError(f"Generation job {job_id} not found")
                prompt = PromptRepository(db).get_prompt(job.prompt_id, for_update=True)
                lifecycle = PromptLifecycle(db, self.config)

                if status is NormalizedStatus.COMPLETE:
                    prompt = lifecycle.mark_completed(prompt, result_url)
                    if prompt.status == PromptStatus.FAILED.value:
                        status = NormalizedStatus.FAILED
                        error_detail = prompt.error_detail
                else:
                    prompt = lifecycle.mark_failed(prompt, error_detail)
                    error_detail = prompt.error_detail

                job.status = status.value
                if count_attempt:
                    job.attempts += 1
                job.result_url = result_url if status is NormalizedStatus.COMPLETE else None
                job.error_detail = error_detail if status is NormalizedStatus.FAILED else None
                if provider_status is not None:
                    job.provider_status = provider_status
                job.completed_at = completed_at or utcnow()
                prompt_id = job.prompt_id
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info("Job %s for prompt %s finished: %s", job_id, prompt_id, status.value)
        return status


class _OrchestratorSingleton:
    """Singleton wrapper for GenerationOrchestrator."""

    _instance: GenerationOrchestrator | None = None

    @classmethod
    def get_instance(cls) -> GenerationOrchestrator:
        if cls._instance is None:
            cls._instance = GenerationOrchestrator(build_adapter(settings))
        return cls._instance


def get_orchestrator() -> GenerationOrchestrator:
    """Return the orchestrator bound to the configured provider."""
    return _OrchestratorSingleton.get_instance()


async def shutdown_orchestrator() -> None:
    """Close the provider client of the shared orchestrator, if one was created."""
    instance = _OrchestratorSingleton._instance
    if instance is not None:
        await instance.adapter.close()
