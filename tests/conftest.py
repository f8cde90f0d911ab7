"""Shared fixtures: an in-memory quiz backend and a hand-cranked event loop clock."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json

import httpx
import pytest

from quiz_portal.client.backend_client import QuizBackendClient
from quiz_portal.core.services.question_timer import QuestionTimer
from quiz_portal.core.services.session_controller import SessionController
from quiz_portal.core.services.token_resolver import TokenResolver
from quiz_portal.core.session_manager import SessionManager

BACKEND_URL = "http://backend.test/api"


@dataclass
class _Scheduled:
    when: float
    callback: object
    args: tuple
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Implements ``time`` and ``call_at``; time only moves when ``advance`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._scheduled: list[_Scheduled] = []

    def time(self) -> float:
        return self.now

    def call_at(self, when, callback, *args):
        handle = _Scheduled(when, callback, args)
        self._scheduled.append(handle)
        return handle

    def pending(self) -> int:
        return sum(1 for handle in self._scheduled if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self._scheduled if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._scheduled.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self._scheduled = [h for h in self._scheduled if not h.cancelled]
        self.now = target


def make_quiz(token: str, question_count: int = 3, seconds: int = 10) -> dict:
    return {
        "quiz": {
            "id": f"quiz-{token}",
            "title": "Python Basics",
            "description": "A short warm-up quiz.",
            "topic": "python",
            "time_per_question": seconds,
            "total_questions": question_count,
        },
        "questions": [
            {
                "id": f"q{index + 1}",
                "question_text": f"Question **{index + 1}**?",
                "options": [f"A{index + 1}", f"B{index + 1}", f"C{index + 1}", f"D{index + 1}"],
                "time_limit": seconds,
                "order": index,
                "correct_answer": f"B{index + 1}",
            }
            for index in range(question_count)
        ],
    }


@dataclass
class FakeQuizBackend:
    """Serves the four backend routes from dictionaries and records submissions."""

    quizzes: dict[str, dict] = field(default_factory=dict)
    results: dict[str, dict] = field(default_factory=dict)
    submissions: dict[str, list[dict]] = field(default_factory=dict)
    requests: list[str] = field(default_factory=list)
    down: bool = False
    status_override: int | None = None

    def add_quiz(self, token: str, question_count: int = 3, seconds: int = 10) -> dict:
        self.quizzes[token] = make_quiz(token, question_count, seconds)
        return self.quizzes[token]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(f"{request.method} {request.url.path}")
        if self.down:
            raise httpx.ConnectError("backend down", request=request)
        if self.status_override is not None:
            return httpx.Response(self.status_override, json={"detail": "backend error"})

        parts = request.url.path.removeprefix("/api/quiz/").split("/")
        token, rest = parts[0], parts[1:]

        if request.method == "GET" and rest == ["results"]:
            if token not in self.results:
                return httpx.Response(404, json={"detail": "Result not found"})
            return httpx.Response(200, json=self.results[token])

        quiz = self.quizzes.get(token)
        if quiz is None:
            return httpx.Response(404, json={"detail": "Invalid or expired token"})
        if request.method == "GET" and not rest:
            return httpx.Response(200, json=quiz["quiz"])
        if request.method == "GET" and rest == ["questions"]:
            return httpx.Response(200, json=quiz["questions"])
        if request.method == "POST" and rest == ["submit"]:
            body = json.loads(request.content)
            self.submissions.setdefault(token, []).append(body)
            # A submitted token is consumed.
            del self.quizzes[token]
            return httpx.Response(200, json={"message": "Quiz submitted successfully"})
        return httpx.Response(405)


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def backend() -> FakeQuizBackend:
    return FakeQuizBackend()


@pytest.fixture
def backend_client(backend: FakeQuizBackend) -> QuizBackendClient:
    return QuizBackendClient(base_url=BACKEND_URL, transport=httpx.MockTransport(backend.handle))


@pytest.fixture
def make_controller(backend_client: QuizBackendClient, fake_loop: FakeLoop):
    def factory(token: str) -> SessionController:
        return SessionController(
            token,
            resolver=TokenResolver(backend_client),
            backend=backend_client,
            timer=QuestionTimer(fake_loop),
        )

    return factory


@pytest.fixture
def session_manager(backend_client: QuizBackendClient, fake_loop: FakeLoop) -> SessionManager:
    return SessionManager(backend_client, timer_factory=lambda: QuestionTimer(fake_loop))


def run(coroutine):
    return asyncio.run(coroutine)
