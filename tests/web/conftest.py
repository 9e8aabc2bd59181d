"""Fixtures for web API tests."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from eduportal.config.app_config import clear_config_cache
from eduportal.core import auth
from eduportal.llm.client import LLMClient
from eduportal.web.api import create_app
from eduportal.web.dependencies import get_llm_client


@pytest.fixture
def app(tmp_path, monkeypatch):
    """App bound to an isolated database."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("EDUPORTAL_DB", str(tmp_path / "web.db"))
    clear_config_cache()
    app = create_app()
    yield app
    clear_config_cache()


@pytest.fixture
def llm(app):
    """Mock AI client injected into every AI endpoint."""
    mock = MagicMock(spec=LLMClient)
    app.dependency_overrides[get_llm_client] = lambda: mock
    return mock


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _login(email: str, password: str, role: str, name: str) -> dict[str, str]:
    auth.register_user(name=name, email=email, password=password, role=role)
    session = auth.sign_in(email, password)
    return {"Authorization": f"Bearer {session.token}"}


@pytest.fixture
def admin_headers(client):
    return _login("admin@example.com", "admin123", "admin", "Admin")


@pytest.fixture
def student_headers(client):
    return _login("aluno@example.com", "aluno123", "student", "Aluno")


@pytest.fixture
def tree(client, admin_headers):
    """Course -> module -> discipline -> subject created through the API."""
    ids = {}
    parent = None
    for segment, key, name in [
        ("courses", "course", "Direito"),
        ("modules", "module", "Módulo 1"),
        ("disciplines", "discipline", "Constitucional"),
        ("subjects", "subject", "Direitos Fundamentais"),
    ]:
        response = client.post(
            f"/api/academic/{segment}",
            json={"description": name, "parent_id": parent},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        parent = ids[key] = response.json()["id"]
    return ids


@pytest.fixture
def saved_questions(client, admin_headers, tree):
    """Three questions saved under the tree's subject (correct letter A)."""
    questions = [
        {
            "id": i,
            "statement": f"Questão {i}",
            "choices": [{"letter": "A", "text": "Sim"}, {"letter": "B", "text": "Não"}],
            "correct": "A",
            "resolution": f"Porque {i}",
        }
        for i in (1, 2, 3)
    ]
    response = client.post(
        "/api/questions/save",
        json={
            "questions": questions,
            "discipline_id": tree["discipline"],
            "subject_id": tree["subject"],
            "lote": "Lote 1",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return [q["id"] for q in questions]
