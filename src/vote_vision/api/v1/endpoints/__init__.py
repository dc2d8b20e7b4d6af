# src/vote_vision/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .generation import router as generation_router
from .prompts import router as prompts_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "auth_router",
    "prompts_router",
    "votes_router",
    "generation_router",
    "users_router",
]
