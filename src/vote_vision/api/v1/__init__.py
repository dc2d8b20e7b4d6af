# src/vote_vision/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    generation_router,
    prompts_router,
    users_router,
    votes_router,
)

__all__ = [
    "auth_router",
    "prompts_router",
    "votes_router",
    "generation_router",
    "users_router",
]
