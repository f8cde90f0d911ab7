"""Lifecycle of one quiz-taking session as a tagged union of state values.

Every state is a frozen dataclass and ``transition`` is a pure function from
``(state, event)`` to the next state. Side effects (network calls, countdowns)
live in ``SessionController``; nothing here touches a clock or a socket.

    Resolving -> NotStarted -> Active -> Completed -> Submitting -> Submitted
        \\____________\\___________\\______________________\\-> Failed

``Active.current_index`` is derived from the ledger length, so the ledger can
never drift from the position.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

from quiz_portal.core.errors import InvalidTransition, QuizPortalError
from quiz_portal.core.models import Question, Quiz
from quiz_portal.core.services.answer_ledger import AnswerLedger


# --- States ---


@dataclass(slots=True, frozen=True)
class Resolving:
    token: str


@dataclass(slots=True, frozen=True)
class NotStarted:
    token: str
    quiz: Quiz
    questions: tuple[Question, ...]


@dataclass(slots=True, frozen=True)
class Active:
    token: str
    quiz: Quiz
    questions: tuple[Question, ...]
    ledger: AnswerLedger
    selection: int | None = None
    review_index: int | None = None
    review_selection: int | None = None

    @property
    def current_index(self) -> int:
        return len(self.ledger)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def is_reviewing(self) -> bool:
        return self.review_index is not None


@dataclass(slots=True, frozen=True)
class Completed:
    token: str
    quiz: Quiz
    questions: tuple[Question, ...]
    ledger: AnswerLedger


@dataclass(slots=True, frozen=True)
class Submitting:
    token: str
    quiz: Quiz
    questions: tuple[Question, ...]
    ledger: AnswerLedger


@dataclass(slots=True, frozen=True)
class Submitted:
    token: str
    quiz: Quiz
    questions: tuple[Question, ...]
    ledger: AnswerLedger
    acknowledgement: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Failed:
    token: str
    error: QuizPortalError
    failed_from: str
    quiz: Quiz | None = None


SessionState = Union[Resolving, NotStarted, Active, Completed, Submitting, Submitted, Failed]


# --- Events ---


@dataclass(slots=True, frozen=True)
class Resolved:
    quiz: Quiz
    questions: tuple[Question, ...]


@dataclass(slots=True, frozen=True)
class Start:
    pass


@dataclass(slots=True, frozen=True)
class Select:
    option_index: int


@dataclass(slots=True, frozen=True)
class Advance:
    """Explicit move to the next question; carries the countdown's remaining time."""

    remaining_seconds: float


@dataclass(slots=True, frozen=True)
class Expire:
    pass


@dataclass(slots=True, frozen=True)
class Review:
    index: int


@dataclass(slots=True, frozen=True)
class Resume:
    pass


@dataclass(slots=True, frozen=True)
class Submit:
    pass


@dataclass(slots=True, frozen=True)
class SubmitSucceeded:
    acknowledgement: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Fail:
    error: QuizPortalError


SessionEvent = Union[Resolved, Start, Select, Advance, Expire, Review, Resume, Submit, SubmitSucceeded, Fail]


def state_name(state: SessionState) -> str:
    return type(state).__name__


def is_terminal(state: SessionState) -> bool:
    return isinstance(state, (Submitted, Failed))


def transition(state: SessionState, event: SessionEvent) -> SessionState:
    """Return the state that follows ``state`` after ``event``.

    Raises ``InvalidTransition`` for events the state does not accept and
    ``ValueError`` for out-of-range option or review indices.
    """
    if isinstance(event, Fail):
        if isinstance(state, (Resolving, NotStarted, Active, Submitting)):
            return Failed(
                token=state.token,
                error=event.error,
                failed_from=state_name(state),
                quiz=getattr(state, "quiz", None),
            )
        raise _reject(state, event)

    if isinstance(state, Resolving) and isinstance(event, Resolved):
        if not event.questions:
            raise ValueError("A resolved quiz must contain at least one question.")
        return NotStarted(token=state.token, quiz=event.quiz, questions=tuple(event.questions))

    if isinstance(state, NotStarted) and isinstance(event, Start):
        return Active(
            token=state.token,
            quiz=state.quiz,
            questions=state.questions,
            ledger=AnswerLedger(state.questions),
        )

    if isinstance(state, Active):
        return _transition_active(state, event)

    if isinstance(event, Submit):
        if isinstance(state, Completed):
            return Submitting(
                token=state.token, quiz=state.quiz, questions=state.questions, ledger=state.ledger
            )
        if isinstance(state, (Submitting, Submitted)):
            return state

    if isinstance(state, Submitting) and isinstance(event, SubmitSucceeded):
        return Submitted(
            token=state.token,
            quiz=state.quiz,
            questions=state.questions,
            ledger=state.ledger,
            acknowledgement=dict(event.acknowledgement),
        )

    raise _reject(state, event)


def _transition_active(state: Active, event: SessionEvent) -> SessionState:
    if isinstance(event, Select):
        question = state.questions[state.review_index] if state.is_reviewing else state.current_question
        if not 0 <= event.option_index < len(question.options):
            raise ValueError(f"Option index {event.option_index} out of range")
        if state.is_reviewing:
            return replace(state, review_selection=event.option_index)
        return replace(state, selection=event.option_index)

    if isinstance(event, Advance):
        if state.is_reviewing:
            raise _reject(state, event, "return to the current question first")
        if state.selection is None:
            raise _reject(state, event, "no answer selected")
        question = state.current_question
        limit = question.time_limit_seconds
        elapsed = min(limit, max(0.0, limit - event.remaining_seconds))
        return _commit(state, question.options[state.selection], elapsed)

    if isinstance(event, Expire):
        question = state.current_question
        if state.selection is not None:
            option = question.options[state.selection]
        else:
            option = question.default_option
        return _commit(state, option, question.time_limit_seconds)

    if isinstance(event, Review):
        if event.index == state.current_index:
            return replace(state, review_index=None, review_selection=None)
        if not 0 <= event.index < state.current_index:
            raise ValueError(f"Only answered questions can be reviewed, got index {event.index}")
        return replace(state, review_index=event.index, review_selection=None)

    if isinstance(event, Resume):
        return replace(state, review_index=None, review_selection=None)

    raise _reject(state, event)


def _commit(state: Active, option: str, elapsed: float) -> SessionState:
    ledger = state.ledger.commit(state.current_question.id, option, elapsed)
    if ledger.is_complete:
        return Completed(token=state.token, quiz=state.quiz, questions=state.questions, ledger=ledger)
    return Active(token=state.token, quiz=state.quiz, questions=state.questions, ledger=ledger)


def _reject(state: SessionState, event: SessionEvent, reason: str | None = None) -> InvalidTransition:
    return InvalidTransition(state_name(state), type(event).__name__, reason)
