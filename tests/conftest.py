"""Shared fixtures: isolated database, academic tree, users and a mock AI client."""

from unittest.mock import MagicMock

import pytest

from eduportal.config.app_config import clear_config_cache
from eduportal.db import academic_repository, profiles_repository
from eduportal.db.database import init_db
from eduportal.db.questions_repository import Choice, Question, upsert_questions
from eduportal.llm.client import LLMClient


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database; config falls back to built-in defaults."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("EDUPORTAL_DB", raising=False)
    clear_config_cache()
    db_path = tmp_path / "test.db"
    init_db(db_path)
    yield db_path
    clear_config_cache()


@pytest.fixture
def hierarchy(db):
    """One course -> module -> discipline -> subject chain."""
    course = academic_repository.create_item("course", "Direito")
    module = academic_repository.create_item("module", "Módulo 1", course.id)
    discipline = academic_repository.create_item("discipline", "Constitucional", module.id)
    subject = academic_repository.create_item("subject", "Direitos Fundamentais", discipline.id)
    return {"course": course, "module": module, "discipline": discipline, "subject": subject}


@pytest.fixture
def student(db):
    return profiles_repository.insert_profile(name="Ana Souza", email="ana@example.com")


@pytest.fixture
def make_questions(hierarchy):
    """Factory storing n questions under the fixture subject."""

    def _make(n: int = 3, start_id: int = 1, correct: str = "A") -> list[Question]:
        questions = [
            Question(
                id=start_id + i,
                statement=f"Questão {start_id + i}: qual alternativa está correta?",
                choices=[Choice("A", "Primeira"), Choice("B", "Segunda"), Choice("C", "Terceira")],
                correct=correct,
                resolution=f"Resolução {start_id + i}",
                discipline_id=hierarchy["discipline"].id,
                subject_id=hierarchy["subject"].id,
                lote="Lote 1",
            )
            for i in range(n)
        ]
        upsert_questions(questions)
        return questions

    return _make


@pytest.fixture
def mock_llm_client():
    """Mock client; tests set simple_json / simple_chat / chat return values."""
    return MagicMock(spec=LLMClient)
