"""Exception types raised by the quiz-taking core."""

from __future__ import annotations


class QuizPortalError(Exception):
    """Base class for errors surfaced by the quiz portal."""


class NotFound(QuizPortalError):
    """The backend answered 404 for the requested resource."""


class TokenInvalid(NotFound):
    """The invitation token is unknown, expired or already used."""


class ResultNotFound(NotFound):
    """No result exists yet for the token (e.g. the quiz was never submitted)."""


class TransportError(QuizPortalError):
    """The backend could not be reached or answered with an unusable response."""


class InvalidTransition(QuizPortalError):
    """An event was dispatched to a session state that does not accept it."""

    def __init__(self, state: str, event: str, reason: str | None = None) -> None:
        message = f"Cannot apply {event} while session is {state}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.state = state
        self.event = event


class DuplicateCommit(RuntimeError):
    """A second answer record was committed for the same question."""

    def __init__(self, question_id: str) -> None:
        super().__init__(f"Question {question_id!r} already has a committed answer.")
        self.question_id = question_id


class TimerRace(RuntimeError):
    """A countdown fired after it had been cancelled."""
