"""Exception hierarchy shared by the domain services.

Services raise these instead of ``HTTPException``; the API layer maps each
class to a status code in :func:`vote_vision.main.handle_domain_error`.
"""

from __future__ import annotations


class VoteVisionError(RuntimeError):
    """Base exception for all VoteVision domain failures."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(VoteVisionError):
    """Raised for bad input; nothing was persisted or sent to a provider."""

    status_code = 422

    def __init__(self, detail: str, errors: list[str] | None = None) -> None:
        super().__init__(detail)
        self.errors = errors or [detail]


class AuthError(VoteVisionError):
    """Raised when a signature is invalid or an auth session is stale."""

    status_code = 401


class NotFoundError(VoteVisionError):
    """Raised when an entity is missing or in the wrong state for the operation."""

    status_code = 404


class InvalidTransitionError(VoteVisionError):
    """Raised when a prompt lifecycle rule would be violated."""

    status_code = 409

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot transition prompt from {current!r} to {target!r}")
        self.current = current
        self.target = target


class ProviderError(VoteVisionError):
    """Raised when a generation backend is unreachable, misconfigured, or returned garbage.

    ``retryable`` is set for transport timeouts, which callers may retry once.
    """

    status_code = 502

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        super().__init__(detail)
        self.retryable = retryable


class GenerationTimeoutError(ProviderError):
    """Raised when a generation job exhausts its polling budget."""

    status_code = 504
