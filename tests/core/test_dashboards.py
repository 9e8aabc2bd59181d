"""Tests for dashboards, levels and the study chat."""

import pytest

from eduportal.core import chat, dashboards, my_tests
from eduportal.db import practice_repository, questions_repository, tests_repository
from eduportal.db.tests_repository import AttemptAnswer
from eduportal.llm.client import LLMResponse, Message


class TestLevels:
    @pytest.mark.parametrize("xp, level", [(0, 1), (99, 1), (100, 2), (250, 3)])
    def test_level_for(self, xp, level):
        assert dashboards.level_for(xp, xp_per_level=100) == level


class TestDashboards:
    def test_admin_counts(self, make_questions, student):
        make_questions(3)
        dash = dashboards.admin_dashboard()
        assert (dash.students, dash.active_students, dash.courses, dash.questions) == (1, 1, 1, 3)

    def test_student_dashboard(self, make_questions, student):
        make_questions(2)
        test = tests_repository.insert_test("Simulado", "2026-11-10")
        questions_repository.link_to_tests([1, 2], [test.id])
        my_tests.submit_attempt(student.id, test.id, [AttemptAnswer(1, "A")])
        practice_repository.increment_xp(student.id, 120)

        dash = dashboards.student_dashboard(student.id)

        assert (dash.xp, dash.level) == (120, 2)
        assert (dash.completed_tests, dash.average_score) == (1, 50)
        assert dash.last_activity != "N/A"

    def test_student_without_activity(self, student):
        dash = dashboards.student_dashboard(student.id)
        assert (dash.xp, dash.level, dash.average_score, dash.last_activity) == (0, 1, 0, "N/A")


class TestChat:
    def test_history_is_trimmed_and_sent(self, db, mock_llm_client):
        mock_llm_client.chat.return_value = LLMResponse(content=" Olá! ", model="m", provider="p")
        history = [Message("user", f"msg {i}") for i in range(30)]

        assert chat.reply(history, "Nova pergunta", client=mock_llm_client) == "Olá!"
        sent = mock_llm_client.chat.call_args.args[0]
        assert sent[0].role == "system"
        assert len(sent) == 1 + chat.MAX_HISTORY + 1
        assert sent[-1].content == "Nova pergunta"

    def test_empty_message(self, db, mock_llm_client):
        with pytest.raises(ValueError):
            chat.reply([], "  ", client=mock_llm_client)
