"""Facade mapping invitation tokens to isolated quiz sessions."""

from __future__ import annotations

import logging
from collections.abc import Callable

from quiz_portal.client.backend_client import QuizBackendClient
from quiz_portal.core.errors import NotFound
from quiz_portal.core.services.question_timer import QuestionTimer
from quiz_portal.core.services.results_presenter import ResultsPresenter, ResultView
from quiz_portal.core.services.session_controller import SessionController
from quiz_portal.core.services.token_resolver import TokenResolver
from quiz_portal.core.session_state import Failed, Submitted

logger = logging.getLogger(__name__)


class SessionNotFound(NotFound):
    """No session has been opened for the token in this process."""


class SessionManager:
    """Keeps one ``SessionController`` per token.

    Sessions share nothing; the manager only owns the lookup table. Every
    method is meant to be called from the event loop thread.
    """

    def __init__(
        self,
        backend: QuizBackendClient,
        timer_factory: Callable[[], QuestionTimer] = QuestionTimer,
    ) -> None:
        self._backend = backend
        self._resolver = TokenResolver(backend)
        self._presenter = ResultsPresenter(backend)
        self._timer_factory = timer_factory
        self._sessions: dict[str, SessionController] = {}

    async def open(self, token: str) -> SessionController:
        """Return the live session for ``token``, resolving it if needed.

        A failed session is thrown away and the token resolved again, which is
        the retry path offered to the student.
        """
        controller = self._sessions.get(token)
        if controller is not None and not isinstance(controller.state, Failed):
            return controller
        if controller is not None:
            self._sessions.pop(token, None)
            controller.close()

        controller = SessionController(
            token,
            resolver=self._resolver,
            backend=self._backend,
            timer=self._timer_factory(),
        )
        state = await controller.load()

        # Another open() for the same token may have finished while this one waited.
        existing = self._sessions.get(token)
        if existing is not None and not isinstance(existing.state, Failed):
            controller.close()
            return existing
        if existing is not None:
            existing.close()

        if isinstance(state, Failed):
            # Do not keep a table entry for tokens that never resolved.
            self._sessions.pop(token, None)
        else:
            self._sessions[token] = controller
        return controller

    async def submit(self, token: str) -> SessionController:
        """Submit the session's answers; a submitted session is forgotten.

        The token is consumed by the backend, so a later ``open`` resolves
        again and fails with an invalid token.
        """
        controller = self.get(token)
        state = await controller.submit()
        if isinstance(state, Submitted) and self._sessions.get(token) is controller:
            del self._sessions[token]
            controller.close()
            logger.info("Session %s discarded after submission", token)
        return controller

    def get(self, token: str) -> SessionController:
        controller = self._sessions.get(token)
        if controller is None:
            raise SessionNotFound(f"No open session for token {token!r}.")
        return controller

    def abandon(self, token: str) -> bool:
        controller = self._sessions.pop(token, None)
        if controller is None:
            return False
        controller.close()
        logger.info("Session %s abandoned", token)
        return True

    def session_count(self) -> int:
        return len(self._sessions)

    async def fetch_result(self, token: str) -> ResultView:
        return await self._presenter.fetch(token)

    def shutdown(self) -> None:
        for controller in self._sessions.values():
            controller.close()
        self._sessions.clear()

    async def aclose(self) -> None:
        self.shutdown()
        await self._backend.aclose()
