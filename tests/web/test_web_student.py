"""Tests for student endpoints: study area, practice, tests, flashcards, chat."""

import pytest

from eduportal.llm.client import LLMError, LLMResponse


@pytest.fixture
def enrolled(client, admin_headers, student_headers, tree, saved_questions):
    """The signed-in student enrolled in the tree's course."""
    me = client.get("/api/me", headers=student_headers).json()
    response = client.put(
        f"/api/students/{me['id']}/courses", json={"course_ids": [tree["course"]]}, headers=admin_headers
    )
    assert response.status_code == 200
    return me["id"]


class TestStudyArea:
    def test_nested_courses(self, client, student_headers, enrolled, tree):
        (course,) = client.get("/api/study-area", headers=student_headers).json()
        subject = course["modules"][0]["disciplines"][0]["subjects"][0]
        assert subject["id"] == tree["subject"]
        assert subject["question_count"] == 3
        assert subject["completed"] is False


class TestPractice:
    def test_answer_flow(self, client, student_headers, enrolled, tree):
        url = f"/api/practice/{tree['subject']}"
        session = client.get(url, headers=student_headers).json()
        assert session["total"] == 3
        assert "correct" not in session["questions"][0]

        answer = client.post(
            f"{url}/answer", json={"question_id": 1, "letter": "A"}, headers=student_headers
        ).json()
        assert answer["correct"] is True
        assert answer["xp_gained"] == 10

        session = client.get(url, headers=student_headers).json()
        assert session["answered"] == 1
        assert len(session["questions"]) == 2

        dashboard = client.get("/api/dashboard/student", headers=student_headers).json()
        assert dashboard["xp"] == 10

        assert client.delete(url, headers=student_headers).status_code == 204
        assert client.get(url, headers=student_headers).json()["answered"] == 0

    def test_hint_limit_ignores_client_history(self, client, student_headers, enrolled, tree, llm):
        llm.simple_chat.return_value = "Dica"
        codes = [
            client.post(
                f"/api/practice/{tree['subject']}/hint",
                json={"question_id": 1, "previous_hints": []},
                headers=student_headers,
            ).status_code
            for _ in range(5)
        ]
        assert codes == [200, 200, 200, 429, 429]
        assert llm.simple_chat.call_count == 3

    def test_repeated_answer_conflicts(self, client, student_headers, enrolled, tree):
        url = f"/api/practice/{tree['subject']}/answer"
        body = {"question_id": 1, "letter": "A"}
        assert client.post(url, json=body, headers=student_headers).status_code == 200

        assert client.post(url, json=body, headers=student_headers).status_code == 409
        dashboard = client.get("/api/dashboard/student", headers=student_headers).json()
        assert (dashboard["xp"], dashboard["questions_answered"]) == (10, 1)

    def test_hint(self, client, student_headers, enrolled, tree, llm):
        llm.simple_chat.return_value = "Releia o enunciado."
        response = client.post(
            f"/api/practice/{tree['subject']}/hint", json={"question_id": 2}, headers=student_headers
        )
        assert response.json() == {"hint": "Releia o enunciado.", "generated": True, "hints_used": 1}

    def test_unknown_question(self, client, student_headers, enrolled, tree):
        response = client.post(
            f"/api/practice/{tree['subject']}/answer",
            json={"question_id": 999, "letter": "A"},
            headers=student_headers,
        )
        assert response.status_code == 404


class TestMyTests:
    def test_take_test_once(self, client, admin_headers, student_headers, enrolled, llm):
        test = client.post(
            "/api/tests", json={"title": "Simulado", "scheduled_date": "2026-11-20"}, headers=admin_headers
        ).json()
        client.post(
            "/api/questions/link/tests",
            json={"question_ids": [1, 2], "test_ids": [test["id"]]},
            headers=admin_headers,
        )

        todo = client.get("/api/my-tests", headers=student_headers).json()["todo"]
        assert [t["id"] for t in todo] == [test["id"]]

        url = f"/api/my-tests/{test['id']}/attempts"
        body = {"answers": [{"question_id": 1, "letter": "A"}, {"question_id": 2, "letter": "B"}]}
        attempt = client.post(url, json=body, headers=student_headers)
        assert attempt.status_code == 201
        assert attempt.json()["score"] == 50
        assert client.post(url, json=body, headers=student_headers).status_code == 400

        overview = client.get("/api/my-tests", headers=student_headers).json()
        assert overview["todo"] == []
        assert overview["completed"][0]["test_title"] == "Simulado"

        llm.simple_chat.return_value = "Continue estudando."
        analysis = client.get(
            f"/api/my-tests/attempts/{attempt.json()['id']}/analysis", headers=student_headers
        )
        assert analysis.json()["analysis"] == "Continue estudando."


class TestFlashcards:
    def test_generate_and_read_deck(self, client, student_headers, enrolled, tree, llm):
        llm.simple_json.return_value = {"flashcards": [{"front": "Pergunta", "back": "Resposta"}]}

        deck = client.post(
            "/api/flashcards/generate", json={"subject_id": tree["subject"]}, headers=student_headers
        )
        assert deck.status_code == 201
        deck_id = deck.json()["id"]

        cards = client.get(f"/api/flashcards/decks/{deck_id}/cards", headers=student_headers).json()
        assert cards[0]["front"] == "Pergunta"
        assert len(client.get("/api/flashcards/decks", headers=student_headers).json()) == 1
        assert client.delete(f"/api/flashcards/decks/{deck_id}", headers=student_headers).status_code == 204

    def test_generation_failure(self, client, student_headers, enrolled, tree, llm):
        llm.simple_json.side_effect = LLMError("fora do ar")
        response = client.post(
            "/api/flashcards/generate", json={"subject_id": tree["subject"]}, headers=student_headers
        )
        assert response.status_code == 502


class TestChat:
    def test_reply(self, client, student_headers, llm):
        llm.chat.return_value = LLMResponse(content="Oi!", model="m", provider="p")
        response = client.post(
            "/api/chat",
            json={"message": "Olá", "history": [{"role": "assistant", "content": "Bem-vindo"}]},
            headers=student_headers,
        )
        assert response.json() == {"reply": "Oi!"}

    def test_ai_unavailable(self, client, student_headers, llm):
        llm.chat.side_effect = LLMError("fora do ar")
        response = client.post("/api/chat", json={"message": "Olá"}, headers=student_headers)
        assert response.status_code == 502


class TestLeaderboard:
    def test_leaderboard(self, client, student_headers, enrolled, tree):
        client.post(
            f"/api/practice/{tree['subject']}/answer",
            json={"question_id": 1, "letter": "A"},
            headers=student_headers,
        )
        (entry,) = client.get("/api/gamification/leaderboard", headers=student_headers).json()
        assert (entry["xp"], entry["level"]) == (10, 1)
