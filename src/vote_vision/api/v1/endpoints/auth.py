# src/vote_vision/api/v1/endpoints/auth.py
"""Authentication endpoints for the VoteVision API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel

from vote_vision.api.v1.dependencies import (
    CurrentSessionDep,
    ResolverDep,
    SessionDep,
    create_access_token,
)
from vote_vision.core.errors import AuthError
from vote_vision.core.settings import settings
from vote_vision.repositories.user_repo import UserRepository
from vote_vision.schemas.user import LoginRequest, LoginResponse
from vote_vision.services.identity import SignedMessage

from .users import to_user_response

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = logging.getLogger(__name__)


class AuthMessageResponse(BaseModel):
    """Auth message a wallet should sign to log in."""

    address: str
    message: str


@router.get("/message", response_model=AuthMessageResponse)
async def get_auth_message(
    resolver: ResolverDep,
    address: str = Query(..., min_length=1),
) -> AuthMessageResponse:
    """Return a freshly timestamped auth message for ``address``."""
    return AuthMessageResponse(address=address, message=resolver.build_message(address))


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: SessionDep,
    resolver: ResolverDep,
) -> LoginResponse:
    """Verify a signed auth message and issue a session token.

    The first successful login for an address creates the user with the
    default vote balance.
    """
    users = UserRepository(db)
    existing = users.get_user(request.address)
    signed = SignedMessage(
        address=request.address,
        message=request.message,
        signature=request.signature,
    )
    try:
        identity = await asyncio.wait_for(
            asyncio.to_thread(
                resolver.resolve,
                signed,
                stored_tier=existing.weight_tier if existing else None,
            ),
            timeout=settings.signature_verify_timeout_seconds,
        )
    except TimeoutError as err:
        logger.warning("Signature verification timed out for %s", request.address)
        raise AuthError("Signature verification timed out; please try again") from err

    user, created = users.create_user(
        identity.address,
        display_name=request.display_name,
        vote_balance=settings.default_vote_balance,
    )
    db.commit()
    db.refresh(user)
    if created:
        logger.info("Registered new user %s", user.address)

    access_token, expires_at = create_access_token(identity)
    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_at=expires_at,
        created=created,
        user=to_user_response(user, resolver),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(session: CurrentSessionDep, resolver: ResolverDep) -> Response:
    """Sign the wallet out; tokens issued before now stop working."""
    resolver.forget(session.address)
    logger.info("Signed out %s", session.address)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
