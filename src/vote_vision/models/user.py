# src/vote_vision/models/user.py
"""SQLAlchemy models for wallet-backed user identities."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vote_vision.db.session import Base
from vote_vision.db.time import utcnow


class WeightTier(str, enum.Enum):
    """Caller classification that determines ballot weight."""

    BASIC = "basic"
    PREMIUM = "premium"
    VIP = "vip"


class User(Base):
    """Identity keyed by a normalized wallet address.

    Users are created on their first authenticated action and are never
    hard-deleted; ``is_active`` carries the soft lifecycle.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Lower-cased, prefix-stripped; see core.security.normalize_address.
    address: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    vote_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    weight_tier: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=WeightTier.BASIC.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
