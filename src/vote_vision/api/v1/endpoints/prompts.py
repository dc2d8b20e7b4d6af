# src/vote_vision/api/v1/endpoints/prompts.py
"""Prompt submission and browsing endpoints for the VoteVision API."""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.orm import Session

from vote_vision.api.v1.dependencies import (
    CurrentUserDep,
    OrchestratorDep,
    PollerDep,
    SessionDep,
)
from vote_vision.core.errors import NotFoundError
from vote_vision.models import Prompt, PromptStatus
from vote_vision.repositories.job_repo import GenerationJobRepository
from vote_vision.repositories.prompt_repo import ALL_CATEGORIES, PromptRepository
from vote_vision.schemas.prompt import (
    GenerationJobResponse,
    GenerationOptionsPayload,
    PromptCreate,
    PromptDetailResponse,
    PromptResponse,
)
from vote_vision.services.lifecycle import PromptLifecycle
from vote_vision.services.orchestrator import GenerationOptions

router = APIRouter(prefix="/prompts", tags=["prompts"])
logger = logging.getLogger(__name__)


def _get_prompt_or_404(db: Session, prompt_id: int) -> Prompt:
    prompt = PromptRepository(db).get_prompt(prompt_id)
    if prompt is None:
        raise NotFoundError("Prompt not found")
    return prompt


def _to_detail(db: Session, prompt: Prompt) -> PromptDetailResponse:
    job = GenerationJobRepository(db).latest_for_prompt(prompt.id)
    detail = PromptDetailResponse.model_validate(prompt)
    if job is not None:
        detail.generation = GenerationJobResponse.model_validate(job)
    return detail


@router.post("/", response_model=PromptResponse, status_code=status.HTTP_201_CREATED)
async def create_prompt(
    prompt_data: PromptCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PromptResponse:
    """Submit a new prompt; it opens for voting immediately."""
    lifecycle = PromptLifecycle(db)
    try:
        prompt = lifecycle.create_prompt(
            current_user,
            prompt_data.body,
            prompt_data.category,
            prompt_data.tags,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(prompt)
    return PromptResponse.model_validate(prompt)


@router.get("/", response_model=list[PromptResponse])
async def list_prompts(
    db: SessionDep,
    status_filter: PromptStatus | None = Query(None, alias="status"),
    category: str = Query(ALL_CATEGORIES),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[PromptResponse]:
    """List prompts newest first, optionally filtered by status and category."""
    prompts = PromptRepository(db).get_prompts(
        status=status_filter.value if status_filter else None,
        category=category,
        limit=limit,
        offset=offset,
    )
    return [PromptResponse.model_validate(prompt) for prompt in prompts]


@router.get("/{prompt_id}", response_model=PromptDetailResponse)
async def get_prompt(prompt_id: int, db: SessionDep) -> PromptDetailResponse:
    """Return a prompt with its latest generation job."""
    return _to_detail(db, _get_prompt_or_404(db, prompt_id))


@router.post("/{prompt_id}/resubmit", response_model=PromptDetailResponse)
async def resubmit_prompt(
    prompt_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    orchestrator: OrchestratorDep,
    poller: PollerDep,
    options: GenerationOptionsPayload | None = None,
) -> PromptDetailResponse:
    """Send a failed prompt back to the generation provider.

    Only the prompt's owner may resubmit. A rejected submission leaves the
    prompt failed and the error is returned to the caller.
    """
    prompt = _get_prompt_or_404(db, prompt_id)
    if prompt.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the prompt owner can resubmit it",
        )

    PromptLifecycle(db).resubmit(prompt)
    db.commit()
    logger.info("Prompt %s resubmitted by its owner", prompt_id)

    job = await orchestrator.start_generation(
        db,
        prompt_id,
        GenerationOptions(**options.model_dump()) if options else None,
        raise_errors=True,
    )
    if job is not None:
        poller.track(job.id)

    db.refresh(prompt)
    return _to_detail(db, prompt)
