"""Pika Labs adapter."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vote_vision.models.generation_job import NormalizedStatus

from .base import GenerationRequest, ProviderAdapter, ProviderStatus, parse_timestamp


class PikaAdapter(ProviderAdapter):
    """Text-to-video via the Pika video API."""

    name = "pika"
    models = ("pika-1.0", "pika-1.0-fast")
    default_model = "pika-1.0"
    default_style = "vivid"
    default_duration = 4
    status_map = {
        "queued": NormalizedStatus.PENDING,
        "pending": NormalizedStatus.PENDING,
        "processing": NormalizedStatus.PROCESSING,
        "complete": NormalizedStatus.COMPLETE,
        "error": NormalizedStatus.FAILED,
    }

    def submit_path(self) -> str:
        return "/video/generate"

    def status_path(self, provider_job_id: str) -> str:
        return f"/video/{provider_job_id}"

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "prompt": request.prompt,
            "model": request.model or self.model,
            "duration": request.duration,
            "aspect_ratio": request.aspect_ratio,
            "style": request.style or self.default_style,
        }

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
