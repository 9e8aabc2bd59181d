"""Tests for admin endpoints: academic tree, students, questions, tests, materials."""


class TestAcademic:
    def test_hierarchy(self, client, admin_headers, tree):
        data = client.get("/api/academic/hierarchy", headers=admin_headers).json()
        assert [c["id"] for c in data["courses"]] == [tree["course"]]
        assert data["subjects"][0]["parent_id"] == tree["discipline"]

    def test_unknown_segment(self, client, admin_headers):
        assert client.get("/api/academic/planets", headers=admin_headers).status_code == 404

    def test_missing_parent(self, client, admin_headers):
        response = client.post(
            "/api/academic/modules", json={"description": "Órfão"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_rename_and_delete(self, client, admin_headers, tree):
        response = client.put(
            f"/api/academic/subjects/{tree['subject']}",
            json={"description": "Garantias"},
            headers=admin_headers,
        )
        assert response.json()["description"] == "Garantias"
        assert client.delete(f"/api/academic/courses/{tree['course']}", headers=admin_headers).status_code == 204
        assert client.get("/api/academic/subjects", headers=admin_headers).json() == []


class TestStudents:
    def test_roster_crud_and_enrollment(self, client, admin_headers, tree):
        created = client.post(
            "/api/students", json={"name": "Bia", "email": "bia@example.com"}, headers=admin_headers
        )
        assert created.status_code == 201
        sid = created.json()["id"]

        duplicate = client.post(
            "/api/students", json={"name": "Bia 2", "email": "bia@example.com"}, headers=admin_headers
        )
        assert duplicate.status_code == 409

        enrolled = client.put(
            f"/api/students/{sid}/courses", json={"course_ids": [tree["course"]]}, headers=admin_headers
        )
        assert enrolled.json()["added"] == [tree["course"]]

        listing = client.get("/api/students", headers=admin_headers).json()
        assert listing["count"] == 1

        assert client.delete(f"/api/students/{sid}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/students/{sid}", headers=admin_headers).status_code == 404

    def test_roster_student_password_set_by_admin(self, client, admin_headers):
        sid = client.post(
            "/api/students", json={"name": "Bia", "email": "bia@example.com"}, headers=admin_headers
        ).json()["id"]
        credentials = {"email": "bia@example.com", "password": "segredo1"}

        assert client.post("/api/auth/signup", json=credentials).status_code == 409
        assert client.post("/api/auth/signin", json=credentials).status_code == 401

        response = client.put(
            f"/api/students/{sid}/password", json={"password": "segredo1"}, headers=admin_headers
        )
        assert response.status_code == 204
        assert client.post("/api/auth/signin", json=credentials).status_code == 200

    def test_password_route_is_admin_only(self, client, admin_headers, student_headers):
        me = client.get("/api/me", headers=student_headers).json()
        response = client.put(
            f"/api/students/{me['id']}/password", json={"password": "tomada1"}, headers=student_headers
        )
        assert response.status_code == 403

    def test_invalid_email(self, client, admin_headers):
        response = client.post(
            "/api/students", json={"name": "X", "email": "sem-arroba"}, headers=admin_headers
        )
        assert response.status_code == 422


class TestQuestions:
    def test_import_does_not_save(self, client, admin_headers, llm):
        llm.simple_json.return_value = {
            "questions": [{"id": 1, "statement": "Qual?", "choices": [{"letter": "A", "text": "x"}]}]
        }
        document = "1) Enunciado da primeira questão com texto suficiente\nA) x\nB) y\n"

        response = client.post(
            "/api/questions/import",
            files={"file": ("prova.txt", document.encode("utf-8"), "text/plain")},
            data={"lote": "Lote 9"},
            headers=admin_headers,
        )

        assert response.status_code == 200, response.text
        assert response.json()["count"] == 1
        assert client.get("/api/questions", headers=admin_headers).json()["count"] == 0

    def test_import_rejects_unsupported_file(self, client, admin_headers, llm):
        response = client.post(
            "/api/questions/import",
            files={"file": ("prova.docx", b"PK", "application/octet-stream")},
            data={"lote": "Lote 9"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_import_rejects_corrupt_pdf(self, client, admin_headers, llm):
        response = client.post(
            "/api/questions/import",
            files={"file": ("prova.pdf", b"not a pdf at all", "application/pdf")},
            data={"lote": "Lote 9"},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert "corrompido" in response.json()["detail"]
        llm.simple_json.assert_not_called()

    def test_save_list_and_metrics(self, client, admin_headers, saved_questions):
        listing = client.get("/api/questions", params={"lote": "Lote 1"}, headers=admin_headers).json()
        assert listing["count"] == 3

        metrics = client.get(
            "/api/questions/metrics", params={"selected": "1,2"}, headers=admin_headers
        ).json()
        assert metrics["total"] == 3
        assert metrics["selected"] == 2
        assert metrics["distribution"] == [{"letter": "A", "count": 3}]
        assert client.get("/api/questions/lotes", headers=admin_headers).json() == ["Lote 1"]

    def test_save_nothing(self, client, admin_headers, tree):
        response = client.post(
            "/api/questions/save",
            json={"questions": [], "discipline_id": tree["discipline"], "subject_id": tree["subject"], "lote": "L"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_edit_and_bulk_delete(self, client, admin_headers, saved_questions):
        question = client.get("/api/questions/1", headers=admin_headers).json()
        question["statement"] = "Editada"
        assert client.put("/api/questions/1", json=question, headers=admin_headers).json()["statement"] == "Editada"

        response = client.post("/api/questions/delete", json={"question_ids": [1, 2]}, headers=admin_headers)
        assert response.json()["count"] == 2
        assert client.get("/api/questions/1", headers=admin_headers).status_code == 404

    def test_link_to_tests_twice_conflicts(self, client, admin_headers, saved_questions):
        test = client.post(
            "/api/tests", json={"title": "Simulado", "scheduled_date": "2026-11-20"}, headers=admin_headers
        ).json()
        body = {"question_ids": [1, 2], "test_ids": [test["id"]]}

        assert client.post("/api/questions/link/tests", json=body, headers=admin_headers).status_code == 200
        assert client.post("/api/questions/link/tests", json=body, headers=admin_headers).status_code == 409
        assert client.get(f"/api/tests/{test['id']}/questions", headers=admin_headers).json() == [1, 2]


class TestMaterialsAndPaths:
    def test_material_crud(self, client, admin_headers, student_headers, tree):
        body = {
            "kind": "video",
            "title": "Aula 1",
            "url": "https://video.example.com/1",
            "discipline_id": tree["discipline"],
            "subject_id": tree["subject"],
        }
        created = client.post("/api/materials", json=body, headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["kind_label"] == "Vídeo"

        assert client.post("/api/materials", json=body, headers=student_headers).status_code == 403
        assert len(client.get("/api/materials", headers=student_headers).json()) == 1

    def test_video_without_url(self, client, admin_headers, tree):
        body = {
            "kind": "video",
            "title": "Aula",
            "discipline_id": tree["discipline"],
            "subject_id": tree["subject"],
        }
        assert client.post("/api/materials", json=body, headers=admin_headers).status_code == 400

    def test_generate_learning_path(self, client, admin_headers, llm):
        llm.simple_json.return_value = {
            "title": "Trilha",
            "steps": [{"title": "Passo", "description": "Fazer"}],
        }
        response = client.post(
            "/api/learning-paths/generate", json={"request": "Aprender SQL"}, headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["steps"][0]["step"] == 1

    def test_generate_learning_path_failure(self, client, admin_headers, llm):
        llm.simple_json.return_value = {"nada": 1}
        response = client.post(
            "/api/learning-paths/generate", json={"request": "SQL"}, headers=admin_headers
        )
        assert response.status_code == 502


class TestDashboard:
    def test_admin_dashboard(self, client, admin_headers, saved_questions):
        data = client.get("/api/dashboard/admin", headers=admin_headers).json()
        assert data["questions"] == 3
        assert data["courses"] == 1
