"""Service driving one student's quiz session from token to submission."""

from __future__ import annotations

import logging

from quiz_portal.client.backend_client import QuizBackendClient
from quiz_portal.core.errors import (
    InvalidTransition,
    NotFound,
    QuizPortalError,
    TimerRace,
    TokenInvalid,
    TransportError,
)
from quiz_portal.core.services.question_timer import QuestionTimer, TimerHandle
from quiz_portal.core.services.token_resolver import TokenResolver
from quiz_portal.core.session_state import (
    Active,
    Advance,
    Expire,
    Fail,
    Resolved,
    Resolving,
    Resume,
    Review,
    Select,
    SessionEvent,
    SessionState,
    Start,
    Submit,
    SubmitSucceeded,
    Submitted,
    Submitting,
    state_name,
    transition,
)

logger = logging.getLogger(__name__)


class SessionController:
    """Owns the session state value and the session's single countdown.

    All mutation goes through ``_dispatch`` which applies the pure transition and
    then reconciles the countdown with the new state: a fresh countdown whenever
    the current question changes, none outside ``Active``.
    """

    def __init__(
        self,
        token: str,
        resolver: TokenResolver,
        backend: QuizBackendClient,
        timer: QuestionTimer | None = None,
    ) -> None:
        self._resolver = resolver
        self._backend = backend
        self._timer = timer if timer is not None else QuestionTimer()
        self._handle: TimerHandle | None = None
        self._state: SessionState = Resolving(token=token)
        self._closed = False

    @property
    def token(self) -> str:
        return self._state.token

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def timer_handle(self) -> TimerHandle | None:
        return self._handle

    def remaining_seconds(self) -> float | None:
        if self._handle is None:
            return None
        return self._handle.remaining_seconds()

    # --- Lifecycle ---

    async def load(self) -> SessionState:
        """Resolve the token; ends in ``NotStarted`` or ``Failed``."""
        if not isinstance(self._state, Resolving):
            return self._state
        try:
            quiz, questions = await self._resolver.resolve(self.token)
        except (TokenInvalid, TransportError) as exc:
            logger.info("Session %s failed to resolve: %s", self.token, exc)
            return self._dispatch(Fail(exc))
        logger.info("Session %s resolved quiz %s with %d questions", self.token, quiz.id, len(questions))
        return self._dispatch(Resolved(quiz=quiz, questions=tuple(questions)))

    def start(self) -> SessionState:
        state = self._dispatch(Start())
        logger.info("Session %s started", self.token)
        return state

    def select(self, option_index: int) -> SessionState:
        return self._dispatch(Select(option_index))

    def advance(self) -> SessionState:
        """Commit the selected answer and move on.

        If the countdown already reached its deadline, the expiry takes
        precedence and has advanced the session by the time this returns.
        """
        state = self._state
        if not isinstance(state, Active) or state.is_reviewing or state.selection is None:
            # Let the transition table produce the precise rejection.
            return self._dispatch(Advance(remaining_seconds=0.0))
        handle = self._take_handle()
        if handle is None or not self._timer.cancel(handle):
            return self._state
        return self._dispatch(Advance(remaining_seconds=handle.remaining_seconds()))

    def review(self, index: int) -> SessionState:
        return self._dispatch(Review(index))

    def resume(self) -> SessionState:
        return self._dispatch(Resume())

    async def submit(self) -> SessionState:
        if isinstance(self._state, (Submitting, Submitted)):
            return self._state
        ledger = self._dispatch(Submit()).ledger
        event: SessionEvent
        try:
            acknowledgement = await self._backend.submit_answers(self.token, ledger.to_payload())
        except NotFound as exc:
            logger.info("Session %s token rejected on submit", self.token)
            event = Fail(TokenInvalid(str(exc)))
        except TransportError as exc:
            logger.warning("Session %s submission failed: %s", self.token, exc)
            event = Fail(exc)
        else:
            logger.info("Session %s submitted %d answers", self.token, len(ledger))
            event = SubmitSucceeded(acknowledgement)
        if self._closed:
            return self._state
        return self._dispatch(event)

    def close(self) -> None:
        """Tear down: no countdown callback may reach this controller afterwards."""
        self._closed = True
        self._timer.shutdown()
        self._handle = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    # --- Internals ---

    def _dispatch(self, event: SessionEvent) -> SessionState:
        if self._closed:
            raise InvalidTransition(state_name(self._state), type(event).__name__, "session closed")
        previous = self._state
        self._state = transition(previous, event)
        self._reconcile_timer(previous)
        return self._state

    def _reconcile_timer(self, previous: SessionState) -> None:
        state = self._state
        if not isinstance(state, Active):
            self._drop_handle()
            return
        question_changed = (
            not isinstance(previous, Active) or previous.current_index != state.current_index
        )
        if question_changed:
            self._drop_handle()
            limit = state.current_question.time_limit_seconds
            self._handle = self._timer.start(limit, self._on_expired)

    def _take_handle(self) -> TimerHandle | None:
        handle, self._handle = self._handle, None
        return handle

    def _drop_handle(self) -> None:
        handle = self._take_handle()
        if handle is not None and handle.is_running:
            handle.discard()

    def _on_expired(self, handle: TimerHandle) -> None:
        if self._closed:
            return
        if self._handle is not None and handle is not self._handle:
            raise TimerRace("Expiry delivered for a countdown that is no longer current.")
        self._handle = None
        state = self._state
        if not isinstance(state, Active):
            raise TimerRace(f"Expiry delivered while session is {state_name(state)}.")
        if state.selection is None:
            logger.info(
                "Session %s question %s timed out; committing first option",
                self.token,
                state.current_question.id,
            )
        self._dispatch(Expire())


def failure_kind(error: QuizPortalError) -> str:
    if isinstance(error, TokenInvalid):
        return "token_invalid"
    if isinstance(error, TransportError):
        return "transport"
    return "error"

