"""Data access helpers for working with users."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from vote_vision.core.security import normalize_address
from vote_vision.models.user import User, WeightTier

__all__ = ["UserRepository"]


class UserRepository:
    """Thin wrapper around database access for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_user(self, address: str) -> User | None:
        """Return a user by wallet address, compared case-insensitively."""
        result = self.session.execute(
            select(User).where(User.address == normalize_address(address))
        )
        return result.scalars().first()

    def get_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def create_user(
        self,
        address: str,
        *,
        display_name: str | None = None,
        vote_balance: int = 10,
    ) -> tuple[User, bool]:
        """Insert a user or update the display name of an existing one.

        Returns:
            The user and whether a new row was inserted.
        """
        user = self.get_user(address)
        if user is not None:
            if display_name:
                user.display_name = display_name
            self.session.flush()
            return user, False

        user = User(
            address=normalize_address(address),
            display_name=display_name,
            vote_balance=vote_balance,
            weight_tier=WeightTier.BASIC.value,
        )
        self.session.add(user)
        self.session.flush()
        return user, True

    def grant_balance(self, user: User, amount: int) -> User:
        """Add ``amount`` to a user's vote balance."""
        user.vote_balance += amount
        self.session.flush()
        return user
