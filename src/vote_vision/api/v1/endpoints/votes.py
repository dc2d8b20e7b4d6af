# src/vote_vision/api/v1/endpoints/votes.py
"""Vote-related endpoints for the VoteVision API."""

import asyncio
import dataclasses
import logging

from fastapi import APIRouter

from vote_vision.api.v1.dependencies import (
    CurrentUserDep,
    OrchestratorDep,
    PollerDep,
    ResolverDep,
    SessionDep,
)
from vote_vision.models import PromptStatus
from vote_vision.schemas.vote import TallyResponse, VoteCreate, VoteResponse
from vote_vision.services.ledger import TallySnapshot, VoteLedger

router = APIRouter(prefix="/votes", tags=["votes"])
logger = logging.getLogger(__name__)


def _to_response(tally: TallySnapshot) -> TallyResponse:
    return TallyResponse(**dataclasses.asdict(tally))


@router.post("/", response_model=TallyResponse)
async def cast_vote(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    resolver: ResolverDep,
    orchestrator: OrchestratorDep,
    poller: PollerDep,
) -> TallyResponse:
    """Cast, change or retract a ballot.

    Voting the same direction twice retracts the ballot. The ballot that
    pushes a prompt over the threshold also submits it for generation.
    """
    ledger = VoteLedger(db, resolver)
    tally = await asyncio.to_thread(
        ledger.cast_vote,
        current_user,
        vote_data.prompt_id,
        vote_data.direction,
        settlement_ref=vote_data.settlement_ref,
    )

    if tally.generation_triggered:
        job = await orchestrator.start_generation(db, tally.prompt_id)
        if job is not None:
            poller.track(job.id)
        else:
            tally = dataclasses.replace(tally, status=PromptStatus.FAILED.value)

    return _to_response(tally)


@router.get("/{prompt_id}/my-vote", response_model=TallyResponse)
async def get_my_vote(
    prompt_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    resolver: ResolverDep,
) -> TallyResponse:
    """Return the tally along with the caller's current ballot direction."""
    return _to_response(VoteLedger(db, resolver).get_tally(prompt_id, current_user))


@router.get("/{prompt_id}", response_model=TallyResponse)
async def get_tally(
    prompt_id: int,
    db: SessionDep,
    resolver: ResolverDep,
) -> TallyResponse:
    """Return the current tally for a prompt in any status."""
    return _to_response(VoteLedger(db, resolver).get_tally(prompt_id))


@router.get("/{prompt_id}/ballots", response_model=list[VoteResponse])
async def list_ballots(
    prompt_id: int,
    db: SessionDep,
    resolver: ResolverDep,
) -> list[VoteResponse]:
    """Return the individual ballots recorded for a prompt."""
    ledger = VoteLedger(db, resolver)
    ledger.get_tally(prompt_id)
    return [VoteResponse.model_validate(vote) for vote in ledger.get_votes_for_prompt(prompt_id)]
