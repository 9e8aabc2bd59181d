"""Tests for the eduportal CLI."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from eduportal.cli.commands import app
from eduportal.config.app_config import clear_config_cache
from eduportal.core.question_extractor import ExtractionReport
from eduportal.db import academic_repository, profiles_repository, questions_repository
from eduportal.db.learning_paths_repository import LearningPathRecord, PathStep
from eduportal.db.questions_repository import Choice, Question

runner = CliRunner()


@pytest.fixture
def db_args(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("EDUPORTAL_DB", raising=False)
    clear_config_cache()
    yield ["--db", str(tmp_path / "cli.db")]
    clear_config_cache()


def _report() -> ExtractionReport:
    return ExtractionReport(
        questions=[Question(id=1, statement="Qual?", choices=[Choice("A", "x")], correct="A")],
        pattern="sequential",
        chunks=1,
    )


class TestInitAndAdmin:
    def test_init_db(self, db_args, tmp_path):
        result = runner.invoke(app, [*db_args, "init-db"])
        assert result.exit_code == 0
        assert (tmp_path / "cli.db").exists()

    def test_create_admin(self, db_args):
        result = runner.invoke(app, [*db_args, "create-admin", "chefe@example.com", "--password", "segredo1"])
        assert result.exit_code == 0, result.stdout
        assert profiles_repository.get_profile_by_email("chefe@example.com").role == "admin"

    def test_create_admin_weak_password(self, db_args):
        result = runner.invoke(app, [*db_args, "create-admin", "chefe@example.com", "--password", "1"])
        assert result.exit_code == 1


class TestImportQuestions:
    def test_lists_without_saving(self, db_args, tmp_path):
        source = tmp_path / "prova.txt"
        source.write_text("1) Qual?\nA) x\n", encoding="utf-8")

        with patch("eduportal.cli.commands.extract_questions", return_value=_report()):
            result = runner.invoke(app, [*db_args, "import-questions", str(source)])

        assert result.exit_code == 0, result.stdout
        assert "Qual?" in result.stdout
        assert questions_repository.count_questions() == 0

    def test_saves_with_destination(self, db_args, tmp_path):
        runner.invoke(app, [*db_args, "init-db"])
        course = academic_repository.create_item("course", "Curso")
        module = academic_repository.create_item("module", "Módulo", course.id)
        discipline = academic_repository.create_item("discipline", "Disciplina", module.id)
        subject = academic_repository.create_item("subject", "Assunto", discipline.id)
        source = tmp_path / "prova.txt"
        source.write_text("1) Qual?\nA) x\n", encoding="utf-8")

        with patch("eduportal.cli.commands.extract_questions", return_value=_report()):
            result = runner.invoke(
                app,
                [*db_args, "import-questions", str(source), "-d", discipline.id, "-s", subject.id, "-l", "Lote CLI"],
            )

        assert result.exit_code == 0, result.stdout
        assert questions_repository.get_question(1).lote == "Lote CLI"

    def test_missing_file(self, db_args, tmp_path):
        result = runner.invoke(app, [*db_args, "import-questions", str(tmp_path / "nada.pdf")])
        assert result.exit_code == 1


class TestGeneratePath:
    def test_prints_steps(self, db_args):
        path = LearningPathRecord(
            id="p1",
            title="Trilha SQL",
            description="",
            duration="2 semanas",
            target_audience="",
            steps=[PathStep(1, "SELECT", "Consultas")],
        )
        with patch("eduportal.cli.commands.generate_learning_path", return_value=path):
            result = runner.invoke(app, [*db_args, "generate-path", "Quero SQL"])

        assert result.exit_code == 0
        assert "Trilha SQL" in result.stdout
        assert "SELECT" in result.stdout
