"""Vote-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class VoteCreate(BaseModel):
    """Schema for casting, changing or retracting a ballot."""

    prompt_id: int
    direction: Literal["up", "down"] = Field(
        ...,
        description="Casting the current direction again retracts the ballot",
    )
    settlement_ref: str | None = Field(
        None,
        max_length=66,
        description="Optional on-chain transaction hash recorded with the ballot",
    )


class TallyResponse(BaseModel):
    """Tally of a prompt after a vote operation."""

    prompt_id: int
    votes_up: int
    votes_down: int
    total_votes: int
    approval_percentage: int
    status: str
    my_vote: Literal["up", "down"] | None = None
    generation_triggered: bool = False

    model_config = ConfigDict(from_attributes=True)


class VoteResponse(BaseModel):
    """A recorded ballot."""

    id: int
    voter_id: int
    prompt_id: int
    direction: Literal["up", "down"]
    weight: int
    settlement_ref: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
