"""Provider adapter contract for video generation backends.

Every backend speaks its own submission shape, auth headers and status
vocabulary. An adapter translates a provider-agnostic
:class:`GenerationRequest` into the backend's submission call and maps the
backend's status payload onto :class:`NormalizedStatus`. Status strings that
an adapter does not recognize map to ``pending``, never to ``complete``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar

import httpx

from vote_vision.core.errors import ProviderError
from vote_vision.db.time import utcnow
from vote_vision.models.generation_job import NormalizedStatus

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400
_ERROR_BODY_LIMIT = 200
# Epoch values above this are milliseconds rather than seconds.
_EPOCH_MS_THRESHOLD = 10**11


@dataclass(frozen=True)
class GenerationRequest:
    """Provider-agnostic description of a video to generate."""

    prompt: str
    duration: int
    aspect_ratio: str
    style: str | None = None
    model: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProviderSubmission:
    """Provider acknowledgement of a submitted job."""

    provider_job_id: str
    submitted_at: datetime


@dataclass(frozen=True)
class ProviderStatus:
    """One status observation translated into the normalized vocabulary."""

    provider_job_id: str
    provider_status: str
    normalized: NormalizedStatus
    result_url: str | None = None
    error_detail: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse epoch seconds/milliseconds or ISO-8601 strings; None if unparseable."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, int | float):
            seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, tz=UTC)
        if isinstance(value, str):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    except (ValueError, OverflowError, OSError):
        return None
    return None


class ProviderAdapter(ABC):
    """Base class for one external video generation backend."""

    name: ClassVar[str]
    models: ClassVar[tuple[str, ...]] = ()
    default_model: ClassVar[str | None] = None
    default_style: ClassVar[str | None] = None
    # Falls back to GENERATION_DEFAULT_DURATION when unset.
    default_duration: ClassVar[int | None] = None
    requires_api_key: ClassVar[bool] = True
    # Lower-cased provider status -> normalized status.
    status_map: ClassVar[Mapping[str, NormalizedStatus]] = {}

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        timeout_seconds: float = 30.0,
        model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.model = model or self.default_model
        self._client = client
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()

    def supported_models(self) -> list[str]:
        return list(self.models)

    @classmethod
    def normalize_status(cls, raw: Any) -> NormalizedStatus:
        """Map a provider status string onto the normalized vocabulary."""
        if not isinstance(raw, str):
            return NormalizedStatus.PENDING
        return cls.status_map.get(raw.strip().lower(), NormalizedStatus.PENDING)

    @property
    def configured(self) -> bool:
        if not self.base_url:
            return False
        return bool(self.api_key) or not self.requires_api_key

    def _require_configuration(self) -> None:
        if not self.base_url:
            raise ProviderError(f"{self.name} base URL not configured")
        if self.requires_api_key and not self.api_key:
            raise ProviderError(f"{self.name} API key not configured")

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_seconds))
        return self._client

    async def _request(
        self, method: str, path: str, *, json_data: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        self._require_configuration()
        client = await self._ensure_client()
        url = f"{self.base_url}{path}"
        try:
            response = await client.request(method, url, json=json_data, headers=self._headers())
        except httpx.TimeoutException as exc:
            logger.warning("%s request %s %s timed out", self.name, method, path)
            raise ProviderError(f"{self.name} request timed out", retryable=True) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s request %s %s failed: %s", self.name, method, path, exc)
            raise ProviderError(f"{self.name} is unreachable: {exc}") from exc

        if response.status_code >= HTTP_BAD_REQUEST:
            body = response.text[:_ERROR_BODY_LIMIT]
            raise ProviderError(f"{self.name} API error: {response.status_code} - {body}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.name} returned an unparseable response") from exc
        if not isinstance(payload, dict):
            raise ProviderError(f"{self.name} returned an unexpected response shape")
        return payload

    @abstractmethod
    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        """Translate a request into the provider's submission body."""

    @abstractmethod
    def submit_path(self) -> str:
        """Path (relative to the base URL) for job submission."""

    @abstractmethod
    def status_path(self, provider_job_id: str) -> str:
        """Path (relative to the base URL) for a job's status."""

    @abstractmethod
    def parse_status(self, provider_job_id: str, payload: Mapping[str, Any]) -> ProviderStatus:
        """Translate a provider status payload."""

    async def submit(self, request: GenerationRequest) -> ProviderSubmission:
        """Submit a generation job and return the provider-assigned id.

        Raises:
            ProviderError: If the adapter is misconfigured, the backend is
                unreachable, or the response carries no job id.
        """
        payload = await self._request("POST", self.submit_path(), json_data=self.build_payload(request))
        provider_job_id = payload.get("id")
        if not provider_job_id:
            raise ProviderError(f"{self.name} response did not include a job id")
        return ProviderSubmission(provider_job_id=str(provider_job_id), submitted_at=utcnow())

    async def check_status(self, provider_job_id: str) -> ProviderStatus:
        """Fetch and normalize the status of a submitted job."""
        payload = await self._request("GET", self.status_path(provider_job_id))
        return self.parse_status(provider_job_id, payload)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None and self._owns_client:
                await self._client.aclose()
                self._client = None
