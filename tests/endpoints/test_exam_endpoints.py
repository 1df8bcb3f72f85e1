from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from tests.helpers.asserts import api_call, assert_error


class TestExamCatalogEndpoints:
    def test_requires_bearer_token(self, client: TestClient):
        response = client.get("/exams/")
        assert response.status_code in (401, 403)

    def test_rejects_forged_token(self, client: TestClient):
        response = client.get("/exams/", headers={"Authorization": "Bearer not-a-jwt"})
        assert_error(response, 401, "UNAUTHORIZED")

    def test_student_sees_only_available_exams(self, client: TestClient, student, exam_factory, auth_headers, clock):
        open_exam = exam_factory(title="Aberto")
        exam_factory(title="Futuro", start_date=clock.now + timedelta(days=2))
        exam_factory(title="Inativo", is_active=False)

        response = api_call(client, "GET", "/exams/", headers=auth_headers(student))

        data = response.json()["data"]
        assert [e["id"] for e in data] == [open_exam.id]
        assert data[0]["availability"] == "available"
        assert data[0]["total_questions"] == 4

    def test_admin_sees_every_exam_with_labels(self, client: TestClient, admin, exam_factory, auth_headers, clock):
        exam_factory(title="Aberto")
        exam_factory(title="Futuro", start_date=clock.now + timedelta(days=2))
        exam_factory(title="Encerrado", start_date=clock.now - timedelta(days=9),
                     end_date=clock.now - timedelta(days=2))

        response = api_call(client, "GET", "/exams/", headers=auth_headers(admin))

        labels = {e["title"]: e["availability"] for e in response.json()["data"]}
        assert labels == {"Aberto": "available", "Futuro": "upcoming", "Encerrado": "closed"}

    def test_get_exam_lists_question_order_without_answer_key(self, client: TestClient, student, exam_factory,
                                                              auth_headers):
        exam = exam_factory(answer_key=("B", "C"))

        response = api_call(client, "GET", f"/exams/{exam.id}", headers=auth_headers(student))

        data = response.json()["data"]
        assert [q["position"] for q in data["questions"]] == [1, 2]
        assert "gabarito" not in response.text

    def test_unknown_exam(self, client: TestClient, student, auth_headers):
        response = client.get("/exams/9999", headers=auth_headers(student))
        details = assert_error(response, 404, "EXAM_NOT_FOUND")
        assert details["exam_id"] == 9999

    def test_request_id_is_echoed_in_header_and_error(self, client: TestClient, student, auth_headers):
        headers = {**auth_headers(student), "X-Request-ID": "req-123"}

        response = client.get("/exams/9999", headers=headers)

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["request_id"] == "req-123"


class TestAttemptFlowEndpoints:
    def test_start_resume_submit(self, client: TestClient, student, exam_factory, auth_headers, clock):
        exam = exam_factory(answer_key=("A", "B", "C", "D"), duration_minutes=45)
        headers = auth_headers(student)

        started = client.post(f"/exams/{exam.id}/attempts", headers=headers)
        assert started.status_code == 201
        session = started.json()["data"]
        assert session["state"] == "started"
        assert session["remaining_seconds"] == 45 * 60
        attempt_id = session["attempt"]["id"]

        clock.advance(minutes=15)
        resumed = client.post(f"/exams/{exam.id}/attempts", headers=headers)
        assert resumed.status_code == 200
        assert resumed.json()["data"]["state"] == "resumed"
        assert resumed.json()["data"]["remaining_seconds"] == 30 * 60

        submitted = api_call(
            client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
            json={"answers": [{"position": 1, "choice": "A"}, {"position": 2, "choice": "B"},
                              {"position": 3, "choice": "E"}]}
        )
        result = submitted.json()["data"]["result"]
        assert (result["correct"], result["incorrect"], result["blank"]) == (2, 1, 1)
        assert result["percentage"] == 50
        assert result["summary"] == "2 de 4 questões corretas"
        assert submitted.json()["data"]["attempt"]["status"] == "completed"
        assert submitted.json()["data"]["attempt"]["time_spent_seconds"] == 15 * 60

    def test_double_submit_conflicts(self, client: TestClient, student, exam_factory, auth_headers):
        exam = exam_factory()
        headers = auth_headers(student)
        attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt"]["id"]

        api_call(client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers, json={"answers": {"1": "A"}})
        response = client.post(f"/exams/attempts/{attempt_id}/submit", headers=headers, json={"answers": {"1": "B"}})

        details = assert_error(response, 409, "ALREADY_COMPLETED")
        assert details["attempt_id"] == attempt_id

    def test_expired_attempt_is_finalized_on_return(self, client: TestClient, db_session: Session, student,
                                                    exam_factory, auth_headers, clock):
        exam = exam_factory(duration_minutes=10)
        headers = auth_headers(student)
        attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt"]["id"]

        clock.advance(minutes=10, seconds=30)
        response = client.post(f"/exams/{exam.id}/attempts", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["state"] == "expired"
        assert data["remaining_seconds"] == 0
        assert data["result"]["blank"] == 4
        assert crud_exam_attempt.get(db_session, id=attempt_id).completed_at is not None

    def test_retake_refused_with_prior_summary(self, client: TestClient, student, exam_factory, auth_headers):
        exam = exam_factory(allow_retake=False)
        headers = auth_headers(student)
        attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt"]["id"]
        api_call(client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
                 json={"answers": {"1": "A", "2": "B", "3": "C"}})

        response = client.post(f"/exams/{exam.id}/attempts", headers=headers)

        details = assert_error(response, 409, "RETAKE_NOT_ALLOWED")
        assert details["prior_summary"]["attempt_id"] == attempt_id
        assert details["prior_summary"]["percentage"] == 75

    def test_exam_not_yet_open(self, client: TestClient, student, exam_factory, auth_headers, clock):
        exam = exam_factory(start_date=clock.now + timedelta(hours=3))

        response = client.post(f"/exams/{exam.id}/attempts", headers=auth_headers(student))

        details = assert_error(response, 403, "EXAM_UNAVAILABLE")
        assert details["reason"] == "not_yet_open"

    def test_malformed_answers_rejected(self, client: TestClient, student, exam_factory, auth_headers):
        exam = exam_factory()
        headers = auth_headers(student)
        attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt"]["id"]

        response = client.post(f"/exams/attempts/{attempt_id}/submit", headers=headers,
                               json={"answers": {"zero": "A"}})

        assert_error(response, 422, "VALIDATION_ERROR")

    def test_submit_other_users_attempt_forbidden(self, client: TestClient, student, user_factory, exam_factory,
                                                  auth_headers):
        exam = exam_factory()
        attempt_id = client.post(
            f"/exams/{exam.id}/attempts", headers=auth_headers(student)
        ).json()["data"]["attempt"]["id"]

        response = client.post(f"/exams/attempts/{attempt_id}/submit", headers=auth_headers(user_factory()),
                               json={"answers": {}})

        assert_error(response, 403, "FORBIDDEN")

    def test_attempt_details_and_history(self, client: TestClient, student, exam_factory, auth_headers, clock):
        exam = exam_factory(answer_key=("A", "B"), allow_retake=True)
        headers = auth_headers(student)

        for answers in ({"1": "A"}, {"1": "A", "2": "B"}):
            attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt"]["id"]
            clock.advance(minutes=3)
            api_call(client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
                     json={"answers": answers})

        details = api_call(client, "GET", f"/exams/attempts/{attempt_id}", headers=headers).json()["data"]
        assert [a["user_answer"] for a in details["answers"]] == ["A", "B"]
        assert details["result"]["feedback"] == "Parabéns! Ótimo desempenho!"

        history = api_call(client, "GET", f"/exams/{exam.id}/history", headers=headers).json()["data"]
        assert history["total_attempts"] == 2
        assert [e["percentage_delta"] for e in history["attempts"]] == [50, None]
        assert history["best_percentage"] == 100
        assert history["average_percentage"] == 75


class TestRankingEndpoint:
    def test_hidden_ranking(self, client: TestClient, student, exam_factory, auth_headers):
        exam = exam_factory(show_ranking=False)

        response = client.get(f"/exams/{exam.id}/ranking", headers=auth_headers(student))

        assert_error(response, 403, "RANKING_HIDDEN")

    def test_public_ranking_marks_current_user(self, client: TestClient, student, user_factory, exam_factory,
                                               auth_headers, clock):
        exam = exam_factory(answer_key=("A", "B"), show_ranking=True)
        rival = user_factory(name="Rival")

        for user, answers in ((student, {"1": "A"}), (rival, {"1": "A", "2": "B"})):
            headers = auth_headers(user)
            attempt_id = client.post(f"/exams/{exam.id}/attempts", headers=headers).json()["data"]["attempt"]["id"]
            api_call(client, "POST", f"/exams/attempts/{attempt_id}/submit", headers=headers,
                     json={"answers": answers})

        data = api_call(client, "GET", f"/exams/{exam.id}/ranking", headers=auth_headers(student)).json()["data"]

        assert [e["user_name"] for e in data["entries"]] == ["Rival", "Ana Souza"]
        assert data["current_user_entry"]["position"] == 2
        assert "user_email" not in data["entries"][0]
        assert data["stats"]["total_attempts"] == 2
