# src/vote_vision/services/__init__.py
"""Business logic services for the VoteVision application."""

from .identity import Identity, IdentityResolver, SignedMessage
from .ledger import TallySnapshot, VoteLedger
from .lifecycle import PromptLifecycle
from .orchestrator import GenerationOptions, GenerationOrchestrator
from .poller import GenerationPoller

__all__ = [
    "GenerationOptions",
    "GenerationOrchestrator",
    "GenerationPoller",
    "Identity",
    "IdentityResolver",
    "PromptLifecycle",
    "SignedMessage",
    "TallySnapshot",
    "VoteLedger",
]
