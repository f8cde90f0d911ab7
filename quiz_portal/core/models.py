"""Domain models for the quiz-taking session."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

UNANSWERED = "__unanswered__"
# Sentinel for a question left without any option; the timeout policy never produces it.


@dataclass(slots=True, frozen=True)
class Quiz:
    """Quiz metadata bound to an invitation token."""

    id: str
    title: str
    description: str
    topic: str
    question_count: int
    seconds_per_question: int

    @property
    def total_time_seconds(self) -> int:
        return self.question_count * self.seconds_per_question

    def total_time_label(self) -> str:
        minutes, seconds = divmod(self.total_time_seconds, 60)
        return f"{minutes}m {seconds}s"


@dataclass(slots=True, frozen=True)
class Question:
    """Student-facing multiple-choice question (never carries the answer key)."""

    id: str
    prompt: str
    options: tuple[str, ...]
    time_limit_seconds: int
    order: int

    @property
    def default_option(self) -> str:
        return self.options[0] if self.options else UNANSWERED


@dataclass(slots=True, frozen=True)
class AnswerRecord:
    """A committed answer for one question."""

    question_id: str
    chosen_option: str
    elapsed_seconds: float

    @property
    def is_unanswered(self) -> bool:
        return self.chosen_option == UNANSWERED


@dataclass(slots=True, frozen=True)
class ReviewItem:
    """Per-question line of a scored result."""

    question_text: str
    student_answer: str
    correct_answer: str
    is_correct: bool


@dataclass(slots=True, frozen=True)
class QuizResult:
    """Result computed by the external scorer."""

    total_score: int
    question_count: int
    percentage: int
    rank: int
    review: tuple[ReviewItem, ...]
    completed_at: datetime | None = None

    @property
    def incorrect_count(self) -> int:
        return max(0, self.question_count - self.total_score)
