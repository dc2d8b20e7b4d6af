"""Prompt lifecycle state machine.

    pending -> voting -> generating -> completed
                            |  ^
                            v  |
                           failed

``pending`` only exists inside the creation transaction. ``failed -> generating``
happens on explicit resubmission only. This module is the single writer of
``Prompt.status``; callers own the transaction and commit it.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from vote_vision.core.errors import InvalidTransitionError, ValidationError
from vote_vision.core.settings import Settings, settings
from vote_vision.models.prompt import Prompt, PromptStatus
from vote_vision.models.user import User
from vote_vision.repositories.prompt_repo import PromptRepository

logger = logging.getLogger(__name__)

TRANSITIONS: dict[PromptStatus, frozenset[PromptStatus]] = {
    PromptStatus.PENDING: frozenset({PromptStatus.VOTING}),
    PromptStatus.VOTING: frozenset({PromptStatus.GENERATING}),
    PromptStatus.GENERATING: frozenset({PromptStatus.COMPLETED, PromptStatus.FAILED}),
    PromptStatus.FAILED: frozenset({PromptStatus.GENERATING}),
    PromptStatus.COMPLETED: frozenset(),
}

MISSING_ASSET_DETAIL = "Provider reported success without a video URL"
UNKNOWN_FAILURE_DETAIL = "Generation failed without an error detail"


def can_transition(current: PromptStatus | str, target: PromptStatus | str) -> bool:
    """Return True if ``current -> target`` is a legal lifecycle edge."""
    try:
        return PromptStatus(target) in TRANSITIONS[PromptStatus(current)]
    except ValueError:
        return False


class PromptLifecycle:
    """Apply lifecycle transitions to prompts inside the caller's transaction."""

    def __init__(self, session: Session, config: Settings | None = None) -> None:
        self.session = session
        self.config = config or settings
        self.prompts = PromptRepository(session)

    def validate_prompt_input(
        self, body: str, category: str, tags: list[str] | None = None
    ) -> tuple[str, list[str]]:
        """Check prompt fields and return the normalized body and tags.

        Raises:
            ValidationError: Listing every violated rule.
        """
        errors: list[str] = []
        text = (body or "").strip()
        if not text:
            errors.append("Prompt text must not be empty")
        elif len(text) > self.config.max_prompt_length:
            errors.append(
                f"Prompt text must be at most {self.config.max_prompt_length} characters"
            )

        if category not in self.config.prompt_categories:
            errors.append(
                f"Category must be one of: {', '.join(self.config.prompt_categories)}"
            )

        cleaned_tags = [tag.strip() for tag in (tags or [])]
        if any(not tag for tag in cleaned_tags):
            errors.append("Tags must not be empty")
        if len(cleaned_tags) > self.config.max_prompt_tags:
            errors.append(f"At most {self.config.max_prompt_tags} tags are allowed")

        if errors:
            raise ValidationError("; ".join(errors), errors)
        # Preserve order, drop duplicates.
        return text, list(dict.fromkeys(cleaned_tags))

    def create_prompt(
        self,
        owner: User,
        body: str,
        category: str,
        tags: list[str] | None = None,
    ) -> Prompt:
        """Validate and insert a prompt, opening it for voting.

        Raises:
            ValidationError: If any field is invalid or the owner already has
                too many prompts in flight. Nothing is inserted in that case.
        """
        text, cleaned_tags = self.validate_prompt_input(body, category, tags)
        active = self.prompts.count_active_for_user(owner.id)
        if active >= self.config.max_active_prompts_per_user:
            raise ValidationError(
                f"You already have {active} active prompts "
                f"(limit {self.config.max_active_prompts_per_user})"
            )

        prompt = self.prompts.create_prompt(
            user_id=owner.id,
            body=text,
            category=category,
            tags=cleaned_tags,
        )
        return self.transition(prompt, PromptStatus.VOTING)

    def transition(
        self,
        prompt: Prompt,
        target: PromptStatus,
        *,
        asset_url: str | None = None,
        error_detail: str | None = None,
    ) -> Prompt:
        """Move a prompt along a legal edge.

        Raises:
            InvalidTransitionError: If the edge is not legal; the prompt is untouched.
        """
        current = prompt.status
        if not can_transition(current, target):
            raise InvalidTransitionError(current, PromptStatus(target).value)

        self.prompts.update_prompt_status(
            prompt,
            PromptStatus(target).value,
            asset_url=asset_url,
            error_detail=error_detail,
        )
        logger.info("Prompt %s: %s -> %s", prompt.id, current, prompt.status)
        return prompt

    def meets_threshold(self, prompt: Prompt) -> bool:
        """Return True if the tally qualifies a prompt for generation."""
        if prompt.votes_up < self.config.min_votes_to_generate:
            return False
        return prompt.approval_ratio >= self.config.min_approval_ratio

    def evaluate_threshold(self, prompt: Prompt) -> bool:
        """Move a voting prompt to ``generating`` once it clears the threshold.

        Returns:
            True if the transition happened.
        """
        if prompt.status != PromptStatus.VOTING.value or not self.meets_threshold(prompt):
            return False
        self.transition(prompt, PromptStatus.GENERATING)
        return True

    def mark_completed(self, prompt: Prompt, asset_url: str | None) -> Prompt:
        """Record a finished generation.

        A success without an asset reference is recorded as a failure instead.
        """
        if not asset_url:
            return self.mark_failed(prompt, MISSING_ASSET_DETAIL)
        return self.transition(prompt, PromptStatus.COMPLETED, asset_url=asset_url)

    def mark_failed(self, prompt: Prompt, error_detail: str | None) -> Prompt:
        """Record a failed generation, always with a non-empty error detail."""
        return self.transition(
            prompt,
            PromptStatus.FAILED,
            error_detail=(error_detail or "").strip() or UNKNOWN_FAILURE_DETAIL,
        )

    def resubmit(self, prompt: Prompt) -> Prompt:
        """Move a failed prompt back to ``generating`` for a fresh submission.

        Raises:
            InvalidTransitionError: Unless the prompt is ``failed``; a voting
                prompt only reaches ``generating`` through the vote threshold.
        """
        if prompt.status != PromptStatus.FAILED.value:
            raise InvalidTransitionError(prompt.status, PromptStatus.GENERATING.value)
        return self.transition(prompt, PromptStatus.GENERATING)
