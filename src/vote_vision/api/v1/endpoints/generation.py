# src/vote_vision/api/v1/endpoints/generation.py
"""Generation provider endpoints for the VoteVision API."""

from fastapi import APIRouter

from vote_vision.api.v1.dependencies import OrchestratorDep, SessionDep
from vote_vision.core.errors import NotFoundError
from vote_vision.repositories.job_repo import GenerationJobRepository
from vote_vision.schemas.prompt import GenerationJobResponse, SupportedModelsResponse

router = APIRouter(prefix="/generation", tags=["generation"])


@router.get("/models", response_model=SupportedModelsResponse)
async def list_models(orchestrator: OrchestratorDep) -> SupportedModelsResponse:
    """Return the models offered by the configured provider."""
    return SupportedModelsResponse(
        provider=orchestrator.provider_name,
        models=orchestrator.adapter.supported_models(),
    )


@router.get("/jobs/{job_id}", response_model=GenerationJobResponse)
async def get_job(job_id: int, db: SessionDep) -> GenerationJobResponse:
    """Return the recorded state of a generation job."""
    job = GenerationJobRepository(db).get(job_id)
    if job is None:
        raise NotFoundError("Generation job not found")
    return GenerationJobResponse.model_validate(job)
