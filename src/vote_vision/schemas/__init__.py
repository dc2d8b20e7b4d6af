"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .prompt import (
    GenerationJobResponse,
    GenerationOptionsPayload,
    PromptCreate,
    PromptDetailResponse,
    PromptResponse,
    SupportedModelsResponse,
)
from .user import BalanceGrant, LoginRequest, LoginResponse, UserResponse
from .vote import TallyResponse, VoteCreate, VoteResponse

__all__ = [
    "GenerationJobResponse", "GenerationOptionsPayload",
    "PromptCreate", "PromptDetailResponse", "PromptResponse",
    "SupportedModelsResponse",
    "BalanceGrant", "LoginRequest", "LoginResponse", "UserResponse",
    "TallyResponse", "VoteCreate", "VoteResponse",
]
