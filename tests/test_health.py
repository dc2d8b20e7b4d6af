# tests/test_health.py
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tests.conftest import ScriptedAdapter
from vote_vision.services import orchestrator as orchestrator_module
from vote_vision.services.orchestrator import GenerationOrchestrator, shutdown_orchestrator


def test_health_check(client: TestClient) -> None:
    """The health endpoint answers without authentication."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_describes_api(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "VoteVision API"
    assert body["docs"] == "/docs"


def test_shutdown_closes_provider_client_without_poller(
    mocker,
    app: FastAPI,
    orchestrator: GenerationOrchestrator,
    adapter: ScriptedAdapter,
) -> None:
    mocker.patch.object(orchestrator_module._OrchestratorSingleton, "_instance", orchestrator)
    close = mocker.patch.object(adapter, "close")

    with TestClient(app) as test_client:
        assert test_client.get("/health").status_code == 200
        assert app.state.poller is None

    close.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_shutdown_without_orchestrator_is_a_no_op(mocker) -> None:
    mocker.patch.object(orchestrator_module._OrchestratorSingleton, "_instance", None)
    await shutdown_orchestrator()
