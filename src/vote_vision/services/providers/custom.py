"""Adapter for a self-hosted generation service.

The service is expected to report statuses in the normalized vocabulary
already; anything else still goes through the status table.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vote_vision.models.generation_job import NormalizedStatus

from .base import GenerationRequest, ProviderAdapter, ProviderStatus, parse_timestamp


class CustomAdapter(ProviderAdapter):
    name = "custom"
    models = ("custom-model-1", "custom-model-2")
    default_model = "custom-model-1"
    requires_api_key = False
    status_map = {status.value: status for status in NormalizedStatus}

    def submit_path(self) -> str:
        return "/generate-video"

    def status_path(self, provider_job_id: str) -> str:
        return f"/video-status/{provider_job_id}"

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": request.prompt,
            "category": request.category,
            "tags": list(request.tags),
            "duration": request.duration,
            "aspectRatio": request.aspect_ratio,
            "model": request.model or self.model,
        }
        if request.style:
            payload["style"] = request.style
        return payload

    def parse_status(self, provider_job_id: str, payload: Mapping[str, Any]) -> ProviderStatus:
        raw = str(payload.get("status", ""))
        return ProviderStatus(
            provider_job_id=provider_job_id,
            provider_status=raw,
            normalized=self.normalize_status(raw),
            result_url=payload.get("video_url") or None,
            error_detail=payload.get("error") or None,
            created_at=parse_timestamp(payload.get("created_at")),
            completed_at=parse_timestamp(payload.get("completed_at")),
        )
