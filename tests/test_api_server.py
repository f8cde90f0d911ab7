from fastapi.testclient import TestClient
import pytest

from conftest import FakeLoop, FakeQuizBackend
from quiz_portal.server.api_server import create_api_app


@pytest.fixture
def client(session_manager) -> TestClient:
    return TestClient(create_api_app(session_manager))


@pytest.fixture
def opened(client: TestClient, backend: FakeQuizBackend) -> TestClient:
    backend.add_quiz("tok-1", question_count=2, seconds=10)
    response = client.post("/api/sessions/tok-1")
    assert response.status_code == 200
    return client


def test_open_returns_start_screen_details(opened: TestClient):
    view = opened.get("/api/sessions/tok-1").json()

    assert view["state"] == "NotStarted"
    assert view["quiz"]["title"] == "Python Basics"
    assert view["quiz"]["total_time_label"] == "0m 20s"
    assert view["question"] is None


def test_question_view_never_leaks_the_answer_key(opened: TestClient):
    view = opened.post("/api/sessions/tok-1/start").json()

    question = view["question"]
    assert view["state"] == "Active"
    assert question["position"] == 1
    assert question["remaining_seconds"] == 10
    assert "<strong>1</strong>" in question["prompt_html"]
    assert [o["text"] for o in question["options"]] == ["A1", "B1", "C1", "D1"]
    assert "correct" not in str(view).lower()


def test_full_flow_through_submission(
    opened: TestClient, backend: FakeQuizBackend, fake_loop: FakeLoop, session_manager
):
    opened.post("/api/sessions/tok-1/start")
    fake_loop.advance(4)
    view = opened.post("/api/sessions/tok-1/select", json={"option_index": 1}).json()
    assert view["question"]["selection"] == 1

    view = opened.post("/api/sessions/tok-1/next").json()
    assert view["question"]["position"] == 2
    assert view["question"]["is_last"] is True
    assert view["can_go_back"] is True

    view = opened.post("/api/sessions/tok-1/review", json={"index": 0}).json()
    assert view["review"]["committed_option"] == "B1"
    assert view["review"]["committed_index"] == 1
    opened.post("/api/sessions/tok-1/resume")

    fake_loop.advance(10)
    view = opened.get("/api/sessions/tok-1").json()
    assert view["state"] == "Completed"
    assert view["answered_count"] == 2

    view = opened.post("/api/sessions/tok-1/submit").json()
    assert view["state"] == "Submitted"
    assert view["results_url"] == "/quiz/tok-1/results"
    answers = backend.submissions["tok-1"][0]["answers"]
    assert [(a["answer"], a["time_spent"]) for a in answers] == [("B1", 4), ("A2", 10)]

    assert session_manager.session_count() == 0
    assert opened.get("/api/sessions/tok-1").status_code == 404
    assert opened.post("/api/sessions/tok-1/submit").status_code == 404
    assert len(backend.submissions["tok-1"]) == 1


def test_reopening_a_submitted_token_asks_the_backend_again(
    opened: TestClient, backend: FakeQuizBackend, fake_loop: FakeLoop
):
    opened.post("/api/sessions/tok-1/start")
    fake_loop.advance(20)
    opened.post("/api/sessions/tok-1/submit")
    seen = len(backend.requests)

    view = opened.post("/api/sessions/tok-1").json()

    assert view["state"] == "Failed"
    assert view["failure"]["kind"] == "token_invalid"
    assert "GET /api/quiz/tok-1" in backend.requests[seen:]


def test_next_without_selection_conflicts(opened: TestClient):
    opened.post("/api/sessions/tok-1/start")
    response = opened.post("/api/sessions/tok-1/next")
    assert response.status_code == 409


def test_bad_option_is_unprocessable(opened: TestClient):
    opened.post("/api/sessions/tok-1/start")
    response = opened.post("/api/sessions/tok-1/select", json={"option_index": 9})
    assert response.status_code == 422


def test_invalid_token_reports_failure(client: TestClient):
    view = client.post("/api/sessions/expired-token").json()

    assert view["state"] == "Failed"
    assert view["failure"]["kind"] == "token_invalid"
    assert client.get("/api/sessions/expired-token").status_code == 404


def test_backend_outage_reports_transport_failure(client: TestClient, backend: FakeQuizBackend):
    backend.down = True
    view = client.post("/api/sessions/tok-1").json()
    assert view["failure"]["kind"] == "transport"


def test_reopen_returns_the_same_running_session(opened: TestClient, fake_loop: FakeLoop):
    opened.post("/api/sessions/tok-1/start")
    fake_loop.advance(3)

    view = opened.post("/api/sessions/tok-1").json()

    assert view["state"] == "Active"
    assert view["question"]["remaining_seconds"] == 7


def test_abandon_cancels_the_countdown(opened: TestClient, session_manager, fake_loop: FakeLoop):
    opened.post("/api/sessions/tok-1/start")

    assert opened.delete("/api/sessions/tok-1").status_code == 204
    assert session_manager.session_count() == 0
    fake_loop.advance(30)
    assert fake_loop.pending() == 0
    assert opened.delete("/api/sessions/tok-1").status_code == 404


def test_results_endpoint_and_page(client: TestClient, backend: FakeQuizBackend):
    backend.results["tok-1"] = {
        "total_score": 1,
        "total_questions": 2,
        "percentage": 50,
        "rank": 1,
        "answers": [
            {"question_text": "Q1", "student_answer": "B1", "correct_answer": "B1", "is_correct": True},
            {"question_text": "Q2 <b>", "student_answer": "A2", "correct_answer": "B2", "is_correct": False},
        ],
    }

    payload = client.get("/api/results/tok-1").json()
    assert payload["percentage"] == 50
    assert payload["medal"] == "gold"
    assert payload["headline"] == "Keep Practicing!"

    page = client.get("/quiz/tok-1/results")
    assert page.status_code == 200
    assert "You scored 1 out of 2 questions correctly" in page.text
    assert "Q2 &lt;b&gt;" in page.text


def test_missing_results(client: TestClient, backend: FakeQuizBackend):
    assert client.get("/api/results/tok-1").status_code == 404
    assert client.get("/quiz/tok-1/results").status_code == 404
    backend.down = True
    assert client.get("/api/results/tok-1").status_code == 502
    assert client.get("/quiz/tok-1/results").status_code == 502


def test_quiz_page_embeds_token(client: TestClient):
    page = client.get("/quiz/tok-1")
    assert page.status_code == 200
    assert 'const TOKEN = "tok-1";' in page.text
    assert client.get("/quiz/bad token").status_code == 404
