"""Data access layer implementing the storage contract."""

from .job_repo import GenerationJobRepository
from .prompt_repo import PromptRepository
from .user_repo import UserRepository
from .vote_repo import VoteRepository

__all__ = [
    "GenerationJobRepository",
    "PromptRepository",
    "UserRepository",
    "VoteRepository",
]
