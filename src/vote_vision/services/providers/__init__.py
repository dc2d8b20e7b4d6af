"""Video generation provider adapters, one per backend."""

from __future__ import annotations

from vote_vision.core.errors import ProviderError
from vote_vision.core.settings import Settings, settings

from .base import (
    GenerationRequest,
    ProviderAdapter,
    ProviderStatus,
    ProviderSubmission,
    parse_timestamp,
)
from .custom import CustomAdapter
from .pika import PikaAdapter
from .runway import RunwayAdapter

ADAPTERS: dict[str, type[ProviderAdapter]] = {
    RunwayAdapter.name: RunwayAdapter,
    PikaAdapter.name: PikaAdapter,
    CustomAdapter.name: CustomAdapter,
}


def build_adapter(config: Settings | None = None) -> ProviderAdapter:
    """Instantiate the adapter selected by ``AI_SERVICE_TYPE``.

    Raises:
        ProviderError: If the configured provider type is unknown.
    """
    config = config or settings
    provider = config.ai_service_type.strip().lower()
    adapter_cls = ADAPTERS.get(provider)
    if adapter_cls is None:
        raise ProviderError(f"Unsupported AI service: {config.ai_service_type}")

    base_url = config.pika_base_url if adapter_cls is PikaAdapter else config.ai_service_base_url
    # AI_SERVICE_MODEL only applies when the selected provider actually offers it.
    model = config.ai_service_model if config.ai_service_model in adapter_cls.models else None
    return adapter_cls(
        api_key=config.ai_service_api_key,
        base_url=base_url,
        timeout_seconds=config.provider_http_timeout_seconds,
        model=model,
    )


__all__ = [
    "ADAPTERS",
    "CustomAdapter",
    "GenerationRequest",
    "PikaAdapter",
    "ProviderAdapter",
    "ProviderStatus",
    "ProviderSubmission",
    "RunwayAdapter",
    "build_adapter",
    "parse_timestamp",
]
