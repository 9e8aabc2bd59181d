"""Tests for the Classbuild export endpoints."""

from unittest.mock import MagicMock, patch

import pytest

from eduportal.integrations.classbuild import (
    ClassbuildError,
    ConnectionCheck,
    RemoteItem,
    SendError,
    SendReport,
)

SETTINGS = {"api_key": "chave", "escola_id": "42", "banco_questao_id": "7"}


@pytest.fixture
def remote(monkeypatch):
    """Replace the Classbuild client class used by the routes."""
    monkeypatch.delenv("CLASSBUILD_API_KEY", raising=False)
    with patch("eduportal.web.routes.classbuild.ClassbuildClient") as client_class:
        instance = MagicMock()
        instance.check_connection.return_value = ConnectionCheck(True, "Conexão bem-sucedida!")
        instance.create_discipline.return_value = RemoteItem("d-1", "Constitucional")
        instance.create_subject.return_value = RemoteItem("s-1", "Direitos")
        instance.send_questions.return_value = SendReport(total=2, success_count=2)

        def build(settings):
            instance.settings = settings
            return instance

        client_class.side_effect = build
        yield instance


class TestCheck:
    def test_uses_request_overrides(self, client, admin_headers, remote):
        response = client.post("/api/classbuild/check", json=SETTINGS, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Conexão bem-sucedida!"}
        assert remote.settings.api_key == "chave"
        assert remote.settings.escola_id == "42"

    def test_student_forbidden(self, client, student_headers, remote):
        response = client.post("/api/classbuild/check", json=SETTINGS, headers=student_headers)
        assert response.status_code == 403


class TestExport:
    def test_creates_remote_items_and_sends(self, client, admin_headers, saved_questions, remote):
        response = client.post(
            "/api/classbuild/export",
            json={
                "question_ids": saved_questions[:2],
                "discipline_name": "Constitucional",
                "subject_name": "Direitos",
                "settings": SETTINGS,
            },
            headers=admin_headers,
        )

        assert response.status_code == 200, response.text
        assert response.json() == {"total": 2, "success_count": 2, "error_count": 0, "errors": []}
        remote.create_subject.assert_called_once_with("Direitos", "d-1")
        sent = remote.send_questions.call_args.args[0]
        assert [q.id for q in sent] == saved_questions[:2]

    def test_existing_ids_skip_creation(self, client, admin_headers, saved_questions, remote):
        remote.send_questions.return_value = SendReport(
            total=1, error_count=1, errors=[SendError(1, "API Error (500)")]
        )
        response = client.post(
            "/api/classbuild/export",
            json={
                "question_ids": [1],
                "discipline_id": "d-9",
                "subject_id": "s-9",
                "settings": SETTINGS,
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["errors"] == [{"question_id": 1, "message": "API Error (500)"}]
        remote.create_discipline.assert_not_called()
        remote.create_subject.assert_not_called()

    def test_unknown_questions(self, client, admin_headers, saved_questions, remote):
        response = client.post(
            "/api/classbuild/export",
            json={"question_ids": [1, 99], "discipline_id": "d", "subject_id": "s"},
            headers=admin_headers,
        )
        assert response.status_code == 404
        assert "99" in response.json()["detail"]

    def test_missing_credentials(self, client, admin_headers, saved_questions, remote):
        response = client.post(
            "/api/classbuild/export",
            json={"question_ids": [1], "discipline_id": "d", "subject_id": "s"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_missing_destination(self, client, admin_headers, saved_questions, remote):
        response = client.post(
            "/api/classbuild/export",
            json={"question_ids": [1], "subject_id": "s", "settings": SETTINGS},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Informe o ID existente ou o nome para criar."

    def test_creation_failure(self, client, admin_headers, saved_questions, remote):
        remote.create_discipline.side_effect = ClassbuildError("Falha ao criar disciplina: 401")
        response = client.post(
            "/api/classbuild/export",
            json={
                "question_ids": [1],
                "discipline_name": "X",
                "subject_name": "Y",
                "settings": SETTINGS,
            },
            headers=admin_headers,
        )
        assert response.status_code == 502
        remote.send_questions.assert_not_called()
