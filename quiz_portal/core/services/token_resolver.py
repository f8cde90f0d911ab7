"""Service that exchanges an invitation token for its quiz and questions."""

from __future__ import annotations

import logging
import re

from quiz_portal.client.backend_client import QuizBackendClient
from quiz_portal.constants.quiz_constants import FALLBACK_TIME_LIMIT_SECONDS
from quiz_portal.core.errors import NotFound, TokenInvalid, TransportError
from quiz_portal.core.models import Question, Quiz

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_token(token: str) -> str:
    """Return the token if it is a non-empty URL-safe string, else raise ``TokenInvalid``."""
    if not token or not _TOKEN_PATTERN.fullmatch(token):
        raise TokenInvalid("Invitation token is malformed.")
    return token


class TokenResolver:
    """Resolves tokens against the backend on every call (no caching)."""

    def __init__(self, backend: QuizBackendClient) -> None:
        self._backend = backend

    async def resolve(self, token: str) -> tuple[Quiz, list[Question]]:
        validate_token(token)
        try:
            quiz_payload = await self._backend.get_quiz(token)
            question_payloads = await self._backend.get_questions(token)
        except NotFound as exc:
            raise TokenInvalid("Quiz not found or expired.") from exc

        if not question_payloads:
            raise TokenInvalid("Quiz has no questions.")

        fallback = quiz_payload.time_per_question
        if fallback <= 0:
            fallback = FALLBACK_TIME_LIMIT_SECONDS
        questions = sorted(
            (payload.to_model(fallback) for payload in question_payloads),
            key=lambda question: question.order,
        )
        self._check_order(questions)

        if quiz_payload.total_questions and quiz_payload.total_questions != len(questions):
            logger.warning(
                "Quiz %s announces %d questions but backend returned %d",
                quiz_payload.id,
                quiz_payload.total_questions,
                len(questions),
            )
        quiz = quiz_payload.to_model(
            question_count=len(questions),
            seconds_per_question=fallback,
        )
        return quiz, questions

    @staticmethod
    def _check_order(questions: list[Question]) -> None:
        orders = [question.order for question in questions]
        if orders != list(range(len(questions))):
            raise TransportError(f"Question order must be contiguous from 0, got {orders}")
        ids = [question.id for question in questions]
        if len(set(ids)) != len(ids):
            raise TransportError("Question identifiers must be unique.")
