"""Prompt-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PromptCreate(BaseModel):
    """Schema for creating a new prompt.

    Length and category rules are enforced by the prompt lifecycle so that
    violations surface as a single validation error.
    """

    body: str = Field(..., description="Prompt text describing the video")
    category: str = Field(..., description="One of the configured categories")
    tags: list[str] = Field(default_factory=list, description="Optional free-form tags")


class PromptResponse(BaseModel):
    """Schema for prompt information returned by the API."""

    id: int
    user_id: int
    body: str
    category: str
    tags: list[str]
    status: str
    asset_url: str | None
    error_detail: str | None
    votes_up: int
    votes_down: int
    total_votes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GenerationJobResponse(BaseModel):
    """Current state of a prompt's generation job."""

    id: int
    provider: str
    provider_job_id: str
    status: str
    result_url: str | None
    error_detail: str | None
    attempts: int
    submitted_at: datetime
    completed_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class PromptDetailResponse(PromptResponse):
    """Prompt with its latest generation job, when one exists."""

    generation: GenerationJobResponse | None = None


class GenerationOptionsPayload(BaseModel):
    """Optional overrides for a manual resubmission."""

    duration: int | None = Field(None, description="Video length in seconds")
    aspect_ratio: str | None = Field(None, description="e.g. 16:9")
    style: str | None = None
    model: str | None = None


class SupportedModelsResponse(BaseModel):
    provider: str
    models: list[str]
