# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator, Mapping
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GENERATION_POLLER_ENABLED"] = "false"

from vote_vision.api.v1.dependencies import (  # noqa: E402
    create_access_token,
    get_identity_resolver_dep,
    get_orchestrator_dep,
    get_poller_dep,
)
from vote_vision.core.security import normalize_address  # noqa: E402
from vote_vision.core.settings import Settings, settings  # noqa: E402
from vote_vision.db.session import Base  # noqa: E402
from vote_vision.db.session import get_db as app_get_session  # noqa: E402
from vote_vision.db.time import utcnow  # noqa: E402
from vote_vision.main import app as fastapi_app  # noqa: E402
from vote_vision.models import NormalizedStatus, Prompt, PromptStatus, User, WeightTier  # noqa: E402
from vote_vision.services.identity import Identity, IdentityResolver  # noqa: E402
from vote_vision.services.orchestrator import GenerationOrchestrator  # noqa: E402
from vote_vision.services.providers import (  # noqa: E402
    GenerationRequest,
    ProviderAdapter,
    ProviderStatus,
    ProviderSubmission,
)

TEST_DB_URL = "sqlite://"


class Wallet:
    """Ethereum account that signs auth messages the way a browser wallet does."""

    def __init__(self) -> None:
        self.account = Account.create()
        self.checksum_address = self.account.address
        self.address = normalize_address(self.account.address)

    def sign(self, message: str) -> str:
        return self.account.sign_message(encode_defunct(text=message)).signature.hex()


class ScriptedAdapter(ProviderAdapter):
    """Provider adapter that replays a scripted sequence of status checks.

    Each script entry is either a ``(raw_status, result_url)`` tuple or an
    exception to raise from that status check. Once the script runs out the
    job stays ``processing``.
    """

    name = "scripted"
    models = ("scripted-1", "scripted-2")
    default_model = "scripted-1"
    requires_api_key = False
    status_map = {status.value: status for status in NormalizedStatus}

    def __init__(
        self,
        statuses: list[Any] | None = None,
        *,
        submit_errors: list[Exception] | None = None,
    ) -> None:
        super().__init__(api_key=None, base_url="http://scripted.test")
        self.statuses = list(statuses or [])
        self.submit_errors = list(submit_errors or [])
        self.submitted: list[GenerationRequest] = []
        self.status_checks = 0

    def submit_path(self) -> str:
        return "/submit"

    def status_path(self, provider_job_id: str) -> str:
        return f"/status/{provider_job_id}"

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {"prompt": request.prompt}

    def parse_status(self, provider_job_id: str, payload: Mapping[str, Any]) -> ProviderStatus:
        raw = str(payload.get("status", ""))
        return ProviderStatus(
            provider_job_id=provider_job_id,
            provider_status=raw,
            normalized=self.normalize_status(raw),
            result_url=payload.get("video_url"),
            error_detail=payload.get("error"),
        )

    async def submit(self, request: GenerationRequest) -> ProviderSubmission:
        self.submitted.append(request)
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        return ProviderSubmission(
            provider_job_id=f"scripted-{len(self.submitted)}",
            submitted_at=utcnow(),
        )

    async def check_status(self, provider_job_id: str) -> ProviderStatus:
        self.status_checks += 1
        entry = self.statuses.pop(0) if self.statuses else ("processing", None)
        if isinstance(entry, Exception):
            raise entry
        raw, url = entry
        payload: dict[str, Any] = {"status": raw}
        if url is not None:
            payload["video_url"] = url
        if raw == "failed":
            payload["error"] = "scripted failure"
        return self.parse_status(provider_job_id, payload)


class RecordingPoller:
    """Stands in for the background poller and records tracked jobs."""

    def __init__(self) -> None:
        self.tracked: list[int] = []

    def track(self, job_id: int) -> None:
        self.tracked.append(job_id)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def test_settings() -> Settings:
    """Runtime settings with a polling budget suited to tests."""
    return settings.model_copy(
        update={
            "generation_poll_interval_seconds": 0.0,
            "generation_max_poll_attempts": 5,
        }
    )


@pytest.fixture()
def resolver() -> IdentityResolver:
    return IdentityResolver()


@pytest.fixture()
def adapter() -> ScriptedAdapter:
    return ScriptedAdapter()


@pytest.fixture()
def orchestrator(
    adapter: ScriptedAdapter,
    session_factory: sessionmaker[Session],
    test_settings: Settings,
) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        adapter,
        session_factory=session_factory,
        config=test_settings,
    )


@pytest.fixture()
def poller() -> RecordingPoller:
    return RecordingPoller()


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users."""

    def _make_user(
        address: str | None = None,
        *,
        tier: WeightTier = WeightTier.BASIC,
        display_name: str | None = None,
    ) -> User:
        user = User(
            address=address or Wallet().address,
            display_name=display_name,
            vote_balance=settings.default_vote_balance,
            weight_tier=tier.value,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_prompt(db_session: Session) -> Callable[..., Prompt]:
    """Return a factory that persists prompts directly in a given status."""

    def _make_prompt(
        owner: User,
        *,
        body: str = "A timelapse of a city skyline from dusk to dawn",
        category: str = "Entertainment",
        status: PromptStatus = PromptStatus.VOTING,
        votes_up: int = 0,
        votes_down: int = 0,
    ) -> Prompt:
        prompt = Prompt(
            user_id=owner.id,
            body=body,
            category=category,
            tags=[],
            status=status.value,
            votes_up=votes_up,
            votes_down=votes_down,
        )
        db_session.add(prompt)
        db_session.commit()
        return prompt

    return _make_prompt


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return a persisted test user."""
    return make_user(display_name="Test User")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second persisted user."""
    return make_user(display_name="Other User")


def auth_headers_for(user: User) -> dict[str, str]:
    identity = Identity(
        address=user.address,
        weight_tier=WeightTier(user.weight_tier),
        authenticated_at=utcnow(),
    )
    token, _ = create_access_token(identity)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers_for(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers_for(other_user)


@pytest.fixture()
def app(
    db_session: Session,
    resolver: IdentityResolver,
    orchestrator: GenerationOrchestrator,
    poller: RecordingPoller,
) -> Iterator[FastAPI]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Callable[..., Any], Callable[..., Any]] = {
        app_get_session: _get_session_override,
        get_identity_resolver_dep: lambda: resolver,
        get_orchestrator_dep: lambda: orchestrator,
        get_poller_dep: lambda: poller,
    }
    fastapi_app.dependency_overrides.update(overrides)
    try:
        yield fastapi_app
    finally:
        for dependency in overrides:
            fastapi_app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
