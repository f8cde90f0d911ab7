"""Async HTTP client for the remote quiz backend.

Only the four student-facing operations are exposed. Every failure is mapped to
one of two outcomes: ``NotFound`` for a 404 and ``TransportError`` for anything
else (other status codes, network errors, timeouts, undecodable bodies).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from quiz_portal.client.schemas import (
    QuestionPayload,
    QuizPayload,
    ResultPayload,
    SubmissionPayload,
)
from quiz_portal.constants.network_constants import (
    BACKEND_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_BACKEND_URL,
)
from quiz_portal.core.errors import NotFound, TransportError

logger = logging.getLogger(__name__)

_QUESTION_LIST = TypeAdapter(list[QuestionPayload])


class QuizBackendClient:
    """Thin wrapper around ``httpx.AsyncClient`` speaking the quiz backend contract."""

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        timeout: float = BACKEND_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_quiz(self, token: str) -> QuizPayload:
        body = await self._request("GET", f"/quiz/{token}")
        return self._parse(QuizPayload.model_validate, body, "quiz")

    async def get_questions(self, token: str) -> list[QuestionPayload]:
        body = await self._request("GET", f"/quiz/{token}/questions")
        return self._parse(_QUESTION_LIST.validate_python, body, "questions")

    async def submit_answers(self, token: str, submission: SubmissionPayload) -> dict[str, Any]:
        body = await self._request("POST", f"/quiz/{token}/submit", json=submission.model_dump())
        return body if isinstance(body, dict) else {"acknowledged": True}

    async def get_results(self, token: str) -> ResultPayload:
        body = await self._request("GET", f"/quiz/{token}/results")
        return self._parse(ResultPayload.model_validate, body, "result")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Backend %s %s failed: %s", method, path, exc)
            raise TransportError(f"Quiz backend unreachable: {exc}") from exc

        if response.status_code == 404:
            raise NotFound(f"{method} {path} returned 404")
        if not response.is_success:
            logger.warning("Backend %s %s answered %s", method, path, response.status_code)
            raise TransportError(f"Quiz backend answered {response.status_code} for {method} {path}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Quiz backend sent a non-JSON body for {method} {path}") from exc

    @staticmethod
    def _parse(validator: Any, body: Any, label: str) -> Any:
        try:
            return validator(body)
        except ValidationError as exc:
            logger.warning("Malformed %s payload from backend: %s", label, exc)
            raise TransportError(f"Quiz backend sent a malformed {label} payload") from exc
