"""Shared API dependencies for authentication and common functionality."""

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from vote_vision.core.errors import AuthError
from vote_vision.core.settings import settings
from vote_vision.db.session import get_db
from vote_vision.models import User, WeightTier
from vote_vision.repositories.user_repo import UserRepository
from vote_vision.services.identity import Identity, IdentityResolver, get_identity_resolver
from vote_vision.services.orchestrator import GenerationOrchestrator, get_orchestrator
from vote_vision.services.poller import GenerationPoller, get_poller

# HTTP Bearer scheme; a missing header is reported as "wallet not connected".
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_identity_resolver_dep() -> IdentityResolver:
    """Return the shared identity resolver."""
    return get_identity_resolver()


def get_orchestrator_dep() -> GenerationOrchestrator:
    """Return the shared generation orchestrator."""
    return get_orchestrator()


def get_poller_dep() -> GenerationPoller:
    """Return the shared generation poller."""
    return get_poller()


ResolverDep = Annotated[IdentityResolver, Depends(get_identity_resolver_dep)]
OrchestratorDep = Annotated[GenerationOrchestrator, Depends(get_orchestrator_dep)]
PollerDep = Annotated[GenerationPoller, Depends(get_poller_dep)]


def create_access_token(identity: Identity) -> tuple[str, datetime]:
    """Encode an identity as a session token.

    The token expires when the signed auth message would go stale, so a
    session never outlives the signature that created it.

    Returns:
        The encoded JWT and its expiry.
    """
    expires_at = identity.authenticated_at + timedelta(seconds=settings.auth_max_age_seconds)
    to_encode: dict[str, object] = {
        "sub": identity.address,
        "tier": identity.weight_tier.value,
        "auth_at": int(identity.authenticated_at.timestamp() * 1000),
        "exp": expires_at,
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt, expires_at


def get_current_session(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    resolver: ResolverDep,
) -> Identity:
    """Decode the bearer token into an explicit session and re-check its freshness.

    Raises:
        AuthError: If no token was sent, it is invalid, or the session is stale.
    """
    if credentials is None:
        raise AuthError("Wallet not connected")
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise AuthError("Could not validate credentials") from err

    subject = payload.get("sub")
    auth_at = payload.get("auth_at")
    if not subject or not isinstance(auth_at, int):
        raise AuthError("Could not validate credentials")

    try:
        tier = WeightTier(payload.get("tier", WeightTier.BASIC.value))
    except ValueError:
        tier = WeightTier.BASIC
    session = Identity(
        address=subject,
        weight_tier=tier,
        authenticated_at=datetime.fromtimestamp(auth_at / 1000, tz=UTC),
    )
    return resolver.validate_session(session)


CurrentSessionDep = Annotated[Identity, Depends(get_current_session)]


def get_current_user(session: CurrentSessionDep, db: SessionDep) -> User:
    """Load the user behind the current session.

    Raises:
        AuthError: If the user does not exist or has been deactivated.
    """
    user = UserRepository(db).get_user(session.address)
    if user is None or not user.is_active:
        raise AuthError("User not found")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
