"""JSON view of a session for the student page. Never includes an answer key."""

from __future__ import annotations

import math

from quiz_portal.core.markdown_renderer import renderer
from quiz_portal.core.models import Question, Quiz
from quiz_portal.core.services.session_controller import SessionController, failure_kind
from quiz_portal.core.session_state import (
    Active,
    Completed,
    Failed,
    NotStarted,
    Submitted,
    Submitting,
    state_name,
)


def _quiz_view(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "topic": quiz.topic,
        "question_count": quiz.question_count,
        "seconds_per_question": quiz.seconds_per_question,
        "total_time_label": quiz.total_time_label(),
    }


def _options_view(question: Question) -> list[dict[str, object]]:
    return [
        {"index": index, "text": option, "label_html": renderer.render_inline(option)}
        for index, option in enumerate(question.options)
    ]


def _question_view(question: Question, position: int, total: int) -> dict[str, object]:
    return {
        "id": question.id,
        "position": position + 1,
        "prompt_html": renderer.render_fragment(question.prompt),
        "options": _options_view(question),
        "time_limit_seconds": question.time_limit_seconds,
        "is_last": position == total - 1,
    }


def build_session_view(controller: SessionController) -> dict[str, object]:
    state = controller.state
    view: dict[str, object] = {
        "token": state.token,
        "state": state_name(state),
        "quiz": None,
        "question_count": 0,
        "current_index": 0,
        "answered_count": 0,
        "progress_percent": 0,
        "question": None,
        "review": None,
        "can_go_back": False,
        "failure": None,
        "results_url": None,
    }

    quiz = getattr(state, "quiz", None)
    if quiz is not None:
        view["quiz"] = _quiz_view(quiz)
        view["question_count"] = quiz.question_count

    if isinstance(state, NotStarted):
        return view

    if isinstance(state, Active):
        total = len(state.questions)
        index = state.current_index
        remaining = controller.remaining_seconds()
        question = _question_view(state.current_question, index, total)
        question["selection"] = state.selection
        question["remaining_seconds"] = None if remaining is None else math.ceil(remaining)
        view.update(
            current_index=index,
            answered_count=len(state.ledger),
            progress_percent=math.floor((index + 1) / total * 100 + 0.5),
            question=question,
            can_go_back=index > 0,
        )
        if state.review_index is not None:
            reviewed = state.questions[state.review_index]
            record = state.ledger[state.review_index]
            review = _question_view(reviewed, state.review_index, total)
            review.update(
                committed_option=record.chosen_option,
                committed_index=_index_of(reviewed, record.chosen_option),
                draft_selection=state.review_selection,
                elapsed_seconds=record.elapsed_seconds,
            )
            view["review"] = review
        return view

    if isinstance(state, (Completed, Submitting, Submitted)):
        view.update(
            current_index=len(state.questions),
            answered_count=len(state.ledger),
            progress_percent=100,
        )
        if isinstance(state, Submitted):
            view["results_url"] = f"/quiz/{state.token}/results"
        return view

    if isinstance(state, Failed):
        view["failure"] = {
            "kind": failure_kind(state.error),
            "message": str(state.error),
            "failed_from": state.failed_from,
        }
    return view


def _index_of(question: Question, option: str) -> int | None:
    try:
        return question.options.index(option)
    except ValueError:
        return None
