# src/vote_vision/api/v1/endpoints/users.py
"""User profile and balance endpoints for the VoteVision API."""

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status

from vote_vision.api.v1.dependencies import CurrentUserDep, ResolverDep, SessionDep
from vote_vision.core.errors import NotFoundError
from vote_vision.core.settings import settings
from vote_vision.models import User
from vote_vision.repositories.user_repo import UserRepository
from vote_vision.schemas.user import BalanceGrant, UserResponse
from vote_vision.services.identity import IdentityResolver

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


def to_user_response(user: User, resolver: IdentityResolver) -> UserResponse:
    """Serialize a user together with the weight their next ballot would carry."""
    tier = resolver.tier_for(user.address, user.weight_tier)
    return UserResponse(
        id=user.id,
        address=user.address,
        display_name=user.display_name,
        vote_balance=user.vote_balance,
        weight_tier=tier.value,
        vote_weight=resolver.weight_for(tier),
        created_at=user.created_at,
    )


def _require_admin(admin_key: str | None) -> None:
    expected = settings.admin_api_key
    if not expected or not admin_key or not secrets.compare_digest(admin_key, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin key required",
        )


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    current_user: CurrentUserDep,
    resolver: ResolverDep,
) -> UserResponse:
    """Return the authenticated user's profile."""
    return to_user_response(current_user, resolver)


@router.post("/{address}/balance", response_model=UserResponse)
async def grant_vote_balance(
    address: str,
    grant: BalanceGrant,
    db: SessionDep,
    resolver: ResolverDep,
    x_admin_key: Annotated[str | None, Header()] = None,
) -> UserResponse:
    """Add vote balance to a user. Requires the ``X-Admin-Key`` header."""
    _require_admin(x_admin_key)

    users = UserRepository(db)
    user = users.get_user(address)
    if user is None:
        raise NotFoundError("User not found")
    users.grant_balance(user, grant.amount)
    db.commit()
    db.refresh(user)
    logger.info("Granted %d vote balance to %s", grant.amount, user.address)
    return to_user_response(user, resolver)
