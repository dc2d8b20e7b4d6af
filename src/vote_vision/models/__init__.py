# src/vote_vision/models/__init__.py
"""SQLAlchemy models for the VoteVision application."""

from .generation_job import GenerationJob, NormalizedStatus
from .prompt import ACTIVE_STATUSES, Prompt, PromptStatus
from .user import User, WeightTier
from .vote import PromptVote, VoteDirection

__all__ = [
    "GenerationJob", "NormalizedStatus",
    "ACTIVE_STATUSES", "Prompt", "PromptStatus",
    "User", "WeightTier",
    "PromptVote", "VoteDirection",
]
