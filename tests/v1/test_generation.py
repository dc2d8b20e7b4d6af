# tests/v1/test_generation.py
"""Tests for generation provider endpoints."""

from collections.abc import Callable

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from vote_vision.models import GenerationJob, Prompt, PromptStatus, User


def test_list_models(client: TestClient) -> None:
    response = client.get("/api/v1/generation/models")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"provider": "scripted", "models": ["scripted-1", "scripted-2"]}


def test_get_job(
    client: TestClient,
    db_session: Session,
    test_user: User,
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = make_prompt(test_user, status=PromptStatus.GENERATING)
    job = GenerationJob(prompt_id=prompt.id, provider="scripted", provider_job_id="scripted-1")
    db_session.add(job)
    db_session.commit()

    response = client.get(f"/api/v1/generation/jobs/{job.id}")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["provider_job_id"] == "scripted-1"
    assert body["status"] == "pending"
    assert body["attempts"] == 0


def test_get_missing_job(client: TestClient) -> None:
    assert client.get("/api/v1/generation/jobs/1").status_code == status.HTTP_404_NOT_FOUND
