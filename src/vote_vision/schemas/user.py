"""User and authentication Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Signed auth message presented by a wallet."""

    address: str = Field(..., min_length=1, description="Wallet address that signed the message")
    message: str = Field(..., min_length=1, description="Auth message including address and timestamp")
    signature: str = Field(..., min_length=1, description="Hex-encoded signature over the message")
    display_name: str | None = Field(None, max_length=50, description="Optional display name")


class UserResponse(BaseModel):
    """Schema for user information returned by the API."""

    id: int
    address: str
    display_name: str | None
    vote_balance: int
    weight_tier: str
    vote_weight: int = Field(..., description="Weight a ballot cast now would carry")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(..., description="Token type (typically 'bearer')")
    expires_at: datetime = Field(..., description="When the session must be re-signed")
    created: bool = Field(..., description="True if this login created the user")
    user: UserResponse


class BalanceGrant(BaseModel):
    """Admin grant of additional vote balance."""

    amount: int = Field(..., ge=1, le=10_000)
