"""Append-only record of the answers committed during a session."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from quiz_portal.client.schemas import AnswerPayload, SubmissionPayload
from quiz_portal.constants.quiz_constants import ELAPSED_PRECISION_DIGITS
from quiz_portal.core.errors import DuplicateCommit
from quiz_portal.core.models import AnswerRecord, Question


class AnswerLedger:
    """Immutable ledger value; ``commit`` returns a new, longer ledger.

    The ledger knows the question order up front, so every commit must target
    the next uncommitted question and stay within that question's time limit.
    """

    __slots__ = ("_questions", "_records")

    def __init__(
        self,
        questions: Sequence[Question],
        records: tuple[AnswerRecord, ...] = (),
    ) -> None:
        self._questions = tuple(questions)
        self._records = records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AnswerRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> AnswerRecord:
        return self._records[index]

    @property
    def is_complete(self) -> bool:
        return len(self._records) == len(self._questions)

    def has(self, question_id: str) -> bool:
        return any(record.question_id == question_id for record in self._records)

    def commit(self, question_id: str, option: str, elapsed_seconds: float) -> "AnswerLedger":
        if self.has(question_id):
            raise DuplicateCommit(question_id)
        if self.is_complete:
            raise ValueError("Every question already has an answer.")
        expected = self._questions[len(self._records)]
        if expected.id != question_id:
            raise ValueError(
                f"Answers must be committed in question order: expected {expected.id!r}, got {question_id!r}"
            )
        if not 0 <= elapsed_seconds <= expected.time_limit_seconds:
            raise ValueError(
                f"Elapsed time {elapsed_seconds} is outside 0..{expected.time_limit_seconds} seconds."
            )
        record = AnswerRecord(
            question_id=question_id,
            chosen_option=option,
            elapsed_seconds=round(elapsed_seconds, ELAPSED_PRECISION_DIGITS),
        )
        return AnswerLedger(self._questions, self._records + (record,))

    def to_list(self) -> list[AnswerRecord]:
        return list(self._records)

    def to_payload(self) -> SubmissionPayload:
        return SubmissionPayload(answers=[AnswerPayload.from_record(record) for record in self._records])
