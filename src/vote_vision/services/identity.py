"""Wallet identity resolution and ballot weight tiers.

A caller proves control of a wallet address by signing an auth message of the form::

    <prefix>

    Address: <address>
    Timestamp: <epoch milliseconds>

:class:`IdentityResolver` checks the signature through an injectable verifier,
rejects stale or future-dated messages, and classifies the caller into a
weight tier. Successful resolutions are cached per address for a bounded
window, and every cache hit is re-validated against the same staleness rule.
Signing out forgets the cached identity and rejects every session for that
address authenticated before the sign-out.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from threading import Lock

from vote_vision.core.errors import AuthError
from vote_vision.core.security import (
    SignatureVerifier,
    get_signature_verifier,
    normalize_address,
)
from vote_vision.core.settings import settings
from vote_vision.db.time import as_utc, utcnow
from vote_vision.models.user import WeightTier

logger = logging.getLogger(__name__)

_ADDRESS_LINE = "Address: "
_TIMESTAMP_LINE = "Timestamp: "


@dataclass(frozen=True)
class SignedMessage:
    """Auth message together with its signature and the claimed address."""

    address: str
    message: str
    signature: str


@dataclass(frozen=True)
class Identity:
    """Trusted caller identity.

    Also serves as the explicit session object carried by access tokens.
    """

    address: str
    weight_tier: WeightTier
    authenticated_at: datetime


class IdentityResolver:
    """Turn signed messages into trusted identities and ballot weights."""

    def __init__(
        self,
        *,
        verifier: SignatureVerifier | None = None,
        message_prefix: str | None = None,
        max_age_seconds: int | None = None,
        clock_skew_seconds: int | None = None,
        cache_size: int | None = None,
        weights: dict[str, int] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._verifier = verifier or get_signature_verifier(settings.signature_scheme)
        self.message_prefix = message_prefix or settings.auth_message_prefix
        self.max_age = timedelta(
            seconds=settings.auth_max_age_seconds if max_age_seconds is None else max_age_seconds
        )
        self.clock_skew = timedelta(
            seconds=(
                settings.auth_max_clock_skew_seconds
                if clock_skew_seconds is None
                else clock_skew_seconds
            )
        )
        self._cache_size = max(1, cache_size or settings.identity_cache_size)
        self._weights = dict(weights or settings.vote_weights)
        self._clock = clock
        self._cache: OrderedDict[str, Identity] = OrderedDict()
        self._revoked: dict[str, datetime] = {}
        self._cache_lock = Lock()

    def build_message(self, address: str, timestamp: datetime | None = None) -> str:
        """Return the canonical auth message a wallet should sign."""
        moment = timestamp or self._clock()
        timestamp_ms = int(moment.timestamp() * 1000)
        return f"{self.message_prefix}\n\n{_ADDRESS_LINE}{address}\n{_TIMESTAMP_LINE}{timestamp_ms}"

    def parse_message(self, message: str) -> tuple[str, datetime]:
        """Extract the embedded address and signing time from an auth message.

        Raises:
            AuthError: If the message does not follow the auth message format.
        """
        if not message.startswith(self.message_prefix):
            raise AuthError("Auth message has an unexpected preamble")

        address: str | None = None
        timestamp_ms: int | None = None
        for line in message[len(self.message_prefix):].splitlines():
            if line.startswith(_ADDRESS_LINE):
                address = line[len(_ADDRESS_LINE):].strip()
            elif line.startswith(_TIMESTAMP_LINE):
                try:
                    timestamp_ms = int(line[len(_TIMESTAMP_LINE):].strip())
                except ValueError as err:
                    raise AuthError("Auth message timestamp is not an integer") from err

        if not address or timestamp_ms is None:
            raise AuthError("Auth message is missing its address or timestamp")
        return address, datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)

    def resolve(self, signed: SignedMessage, *, stored_tier: str | None = None) -> Identity:
        """Verify a signed auth message and return the caller identity.

        Args:
            signed: Message, signature and claimed wallet address.
            stored_tier: Tier recorded for the user, if one exists.

        Raises:
            AuthError: If the message is malformed, addressed to another wallet,
                stale, future-dated, or the signature does not verify.
        """
        embedded_address, signed_at = self.parse_message(signed.message)
        claimed = normalize_address(signed.address)
        if normalize_address(embedded_address) != claimed:
            logger.info("Rejected auth message addressed to a different wallet")
            raise AuthError("Auth message was signed for a different address")

        self._check_freshness(signed_at)

        if not self._verifier(signed.message, signed.signature, signed.address):
            logger.info("Rejected auth message with invalid signature for %s", claimed)
            raise AuthError("Signature verification failed")

        identity = Identity(
            address=claimed,
            weight_tier=self.tier_for(claimed, stored_tier),
            authenticated_at=signed_at,
        )
        self._remember(identity)
        return identity

    def validate_session(self, session: Identity) -> Identity:
        """Re-check an identity carried by an access token.

        A session matching the cached identity is served from the cache;
        otherwise it is cached as the address's latest identity.

        Raises:
            AuthError: If the session has outlived the auth max age or was
                authenticated before the address signed out.
        """
        self._check_freshness(session.authenticated_at)
        key = normalize_address(session.address)
        signed_at = as_utc(session.authenticated_at)
        with self._cache_lock:
            signed_out_at = self._revoked.get(key)
        if signed_out_at is not None and signed_at <= signed_out_at:
            raise AuthError("Session has been signed out; please sign in again")

        cached = self.cached(key)
        if cached is not None and cached.authenticated_at == signed_at:
            return cached
        session = replace(session, address=key, authenticated_at=signed_at)
        if cached is None or cached.authenticated_at < signed_at:
            self._remember(session)
        return session

    def cached(self, address: str) -> Identity | None:
        """Return the cached identity for an address if it is still fresh."""
        key = normalize_address(address)
        with self._cache_lock:
            identity = self._cache.get(key)
            if identity is None:
                return None
            if self._is_stale(identity.authenticated_at):
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return identity

    def forget(self, address: str) -> None:
        """Sign an address out, invalidating every session issued so far."""
        key = normalize_address(address)
        now = self._clock()
        with self._cache_lock:
            self._cache.pop(key, None)
            self._revoked[key] = now
            # Older cut-offs cannot reject anything the max age does not.
            cutoff = now - self.max_age - self.clock_skew
            for stale in [k for k, at in self._revoked.items() if at < cutoff]:
                del self._revoked[stale]

    def has_premium_access(self, address: str) -> bool:
        """Return True if the wallet holds a premium entitlement.

        No entitlement source is connected yet, so nobody is elevated here.
        """
        return False

    def tier_for(self, address: str, stored_tier: str | None = None) -> WeightTier:
        """Classify a wallet into a weight tier."""
        if stored_tier:
            try:
                tier = WeightTier(stored_tier)
            except ValueError:
                tier = WeightTier.BASIC
            if tier is not WeightTier.BASIC:
                return tier
        if self.has_premium_access(address):
            return WeightTier.PREMIUM
        return WeightTier.BASIC

    def weight_for(self, tier: WeightTier | str | None) -> int:
        """Map a tier to its ballot weight; unknown tiers get the lowest weight."""
        key = tier.value if isinstance(tier, WeightTier) else tier
        if key in self._weights:
            return self._weights[key]
        return min(self._weights.values())

    def _check_freshness(self, signed_at: datetime) -> None:
        signed_at = as_utc(signed_at)
        now = self._clock()
        if signed_at - now > self.clock_skew:
            raise AuthError("Auth message timestamp is in the future")
        if self._is_stale(signed_at):
            raise AuthError("Auth message has expired; please sign in again")

    def _is_stale(self, signed_at: datetime) -> bool:
        return self._clock() - as_utc(signed_at) > self.max_age

    def _remember(self, identity: Identity) -> None:
        with self._cache_lock:
            self._cache[identity.address] = identity
            self._cache.move_to_end(identity.address)
            while len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)


class _IdentityResolverSingleton:
    """Singleton wrapper for IdentityResolver."""

    _instance: IdentityResolver | None = None

    @classmethod
    def get_instance(cls) -> IdentityResolver:
        if cls._instance is None:
            cls._instance = IdentityResolver()
        return cls._instance


def get_identity_resolver() -> IdentityResolver:
    """Return the shared identity resolver."""
    return _IdentityResolverSingleton.get_instance()
