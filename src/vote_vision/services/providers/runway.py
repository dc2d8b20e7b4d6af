"""Runway ML adapter."""

from __future__ import annotations

import random
from collections.abc import Mapping
from typing import Any

from vote_vision.models.generation_job import NormalizedStatus

from .base import GenerationRequest, ProviderAdapter, ProviderStatus, parse_timestamp

RUNWAY_API_VERSION = "2024-03-06"
_SEED_RANGE = 1_000_000


class RunwayAdapter(ProviderAdapter):
    """Text-to-video via Runway's task API."""

    name = "runway"
    models = ("gen-3-alpha-turbo", "gen-2", "gen-1")
    default_model = "gen-3-alpha-turbo"
    default_style = "realistic"
    default_duration = 5
    status_map = {
        "pending": NormalizedStatus.PENDING,
        "throttled": NormalizedStatus.PENDING,
        "running": NormalizedStatus.PROCESSING,
        "succeeded": NormalizedStatus.COMPLETE,
        "failed": NormalizedStatus.FAILED,
        "cancelled": NormalizedStatus.FAILED,
    }

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["X-Runway-Version"] = RUNWAY_API_VERSION
        return headers

    def submit_path(self) -> str:
        return "/image_to_video"

    def status_path(self, provider_job_id: str) -> str:
        return f"/tasks/{provider_job_id}"

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "model": request.model or self.model,
            "prompt_image": None,
            "prompt_text": request.prompt,
            "duration": request.duration,
            "ratio": request.aspect_ratio,
            "style": request.style or self.default_style,
            "seed": random.randrange(_SEED_RANGE),
        }

    def parse_status(self, provider_job_id: str, payload: Mapping[str, Any]) -> ProviderStatus:
        raw = str(payload.get("status", ""))
        output = payload.get("output") or []
        result_url = output[0] if isinstance(output, list) and output else None
        return ProviderStatus(
            provider_job_id=provider_job_id,
            provider_status=raw,
            normalized=self.normalize_status(raw),
            result_url=result_url or None,
            error_detail=payload.get("failure_reason") or None,
            created_at=parse_timestamp(payload.get("created_at")),
            completed_at=parse_timestamp(payload.get("completed_at")),
        )
