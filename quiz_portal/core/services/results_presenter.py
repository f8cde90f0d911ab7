"""Service that fetches a scored result and shapes it for display."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from quiz_portal.client.backend_client import QuizBackendClient
from quiz_portal.constants.quiz_constants import EXCELLENT_PERCENTAGE, GOOD_PERCENTAGE
from quiz_portal.core.errors import NotFound, ResultNotFound, TokenInvalid
from quiz_portal.core.models import QuizResult, ReviewItem
from quiz_portal.core.services.token_resolver import validate_token


@dataclass(slots=True, frozen=True)
class ResultView:
    """Render-ready result summary."""

    token: str
    total_score: int
    question_count: int
    incorrect_count: int
    percentage: int
    rank: int
    headline: str
    tone: str
    medal: str | None
    review: tuple[ReviewItem, ...]
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["review"] = [asdict(item) for item in self.review]
        payload["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return payload


def headline_for(percentage: int) -> str:
    if percentage >= EXCELLENT_PERCENTAGE:
        return "Excellent Work!"
    if percentage >= GOOD_PERCENTAGE:
        return "Good Job!"
    return "Keep Practicing!"


def tone_for(percentage: int) -> str:
    if percentage >= EXCELLENT_PERCENTAGE:
        return "good"
    if percentage >= GOOD_PERCENTAGE:
        return "fair"
    return "poor"


def medal_for(rank: int) -> str | None:
    if rank == 1:
        return "gold"
    if rank <= 3:
        return "silver"
    return None


class ResultsPresenter:
    """Reads results from the scorer; never caches or mutates them."""

    def __init__(self, backend: QuizBackendClient) -> None:
        self._backend = backend

    async def fetch(self, token: str) -> ResultView:
        try:
            validate_token(token)
            payload = await self._backend.get_results(token)
        except (NotFound, TokenInvalid) as exc:
            raise ResultNotFound("Quiz results could not be found or may have expired.") from exc
        return self.build_view(token, payload.to_model())

    @staticmethod
    def build_view(token: str, result: QuizResult) -> ResultView:
        return ResultView(
            token=token,
            total_score=result.total_score,
            question_count=result.question_count,
            incorrect_count=result.incorrect_count,
            percentage=result.percentage,
            rank=result.rank,
            headline=headline_for(result.percentage),
            tone=tone_for(result.percentage),
            medal=medal_for(result.rank),
            review=result.review,
            completed_at=result.completed_at,
        )
