"""Payload schemas for the remote quiz backend."""

from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quiz_portal.core.models import AnswerRecord, Question, Quiz, QuizResult, ReviewItem


class _BackendModel(BaseModel):
    # Backend payloads carry more than the student view needs; extras are dropped.
    model_config = ConfigDict(extra="ignore")


class QuizPayload(_BackendModel):
    """Quiz metadata returned by ``GET /quiz/{token}``."""

    id: str
    title: str
    description: str = ""
    topic: str = ""
    time_per_question: int = 0
    total_questions: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    def to_model(self, question_count: int, seconds_per_question: int) -> Quiz:
        return Quiz(
            id=self.id,
            title=self.title,
            description=self.description,
            topic=self.topic,
            question_count=question_count,
            seconds_per_question=seconds_per_question,
        )


class QuestionPayload(_BackendModel):
    """Student-facing question returned by ``GET /quiz/{token}/questions``."""

    id: str
    question_text: str
    options: list[str] = Field(min_length=1)
    time_limit: int | None = None
    order: int = Field(ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    def to_model(self, fallback_time_limit: int) -> Question:
        time_limit = self.time_limit if self.time_limit and self.time_limit > 0 else fallback_time_limit
        return Question(
            id=self.id,
            prompt=self.question_text,
            options=tuple(self.options),
            time_limit_seconds=time_limit,
            order=self.order,
        )


class AnswerPayload(BaseModel):
    """One entry of the submission body."""

    question_id: str
    answer: str
    time_spent: float

    @classmethod
    def from_record(cls, record: AnswerRecord) -> "AnswerPayload":
        return cls(
            question_id=record.question_id,
            answer=record.chosen_option,
            time_spent=record.elapsed_seconds,
        )


class SubmissionPayload(BaseModel):
    """Body of ``POST /quiz/{token}/submit``."""

    answers: list[AnswerPayload]


class ReviewPayload(_BackendModel):
    question_text: str
    student_answer: str = ""
    correct_answer: str = ""
    is_correct: bool = False


class ResultPayload(_BackendModel):
    """Scored result returned by ``GET /quiz/{token}/results``."""

    total_score: int = Field(ge=0)
    total_questions: int = Field(ge=0)
    percentage: float
    rank: int = Field(ge=1)
    completed_at: datetime | None = None
    answers: list[ReviewPayload] = Field(default_factory=list)

    def to_model(self) -> QuizResult:
        return QuizResult(
            total_score=self.total_score,
            question_count=self.total_questions,
            percentage=math.floor(self.percentage + 0.5),
            rank=self.rank,
            completed_at=self.completed_at,
            review=tuple(
                ReviewItem(
                    question_text=item.question_text,
                    student_answer=item.student_answer,
                    correct_answer=item.correct_answer,
                    is_correct=item.is_correct,
                )
                for item in self.answers
            ),
        )
