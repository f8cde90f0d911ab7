import pytest

from quiz_portal.core.errors import InvalidTransition, TokenInvalid, TransportError
from quiz_portal.core.models import Question, Quiz
from quiz_portal.core.session_state import (
    Active,
    Advance,
    Completed,
    Expire,
    Fail,
    Failed,
    NotStarted,
    Resolved,
    Resolving,
    Resume,
    Review,
    Select,
    Start,
    Submit,
    SubmitSucceeded,
    Submitted,
    Submitting,
    transition,
)

QUIZ = Quiz(id="quiz", title="T", description="", topic="", question_count=2, seconds_per_question=10)
QUESTIONS = (
    Question(id="q0", prompt="?", options=("x", "y", "x"), time_limit_seconds=10, order=0),
    Question(id="q1", prompt="?", options=("m", "n"), time_limit_seconds=20, order=1),
)


def _active() -> Active:
    state = transition(Resolving("tok"), Resolved(QUIZ, QUESTIONS))
    return transition(state, Start())


def test_resolution_then_start_enters_first_question():
    state = transition(Resolving("tok"), Resolved(QUIZ, QUESTIONS))
    assert isinstance(state, NotStarted)

    active = transition(state, Start())
    assert isinstance(active, Active)
    assert active.current_index == 0
    assert active.current_question.id == "q0"


def test_advance_requires_a_selection():
    with pytest.raises(InvalidTransition, match="no answer selected"):
        transition(_active(), Advance(remaining_seconds=5))


def test_advance_commits_elapsed_time():
    state = transition(_active(), Select(1))
    state = transition(state, Advance(remaining_seconds=3))

    assert isinstance(state, Active)
    assert state.current_index == 1
    assert state.selection is None
    assert state.ledger[0].chosen_option == "y"
    assert state.ledger[0].elapsed_seconds == 7


def test_duplicate_option_text_is_resolved_by_index():
    state = transition(_active(), Select(2))
    state = transition(state, Advance(remaining_seconds=9))
    assert state.ledger[0].chosen_option == "x"


def test_expire_commits_first_option_or_pending_selection():
    state = transition(_active(), Expire())
    assert state.ledger[0].chosen_option == "x"
    assert state.ledger[0].elapsed_seconds == 10

    state = transition(transition(state, Select(1)), Expire())
    assert isinstance(state, Completed)
    assert state.ledger[1].chosen_option == "n"
    assert state.ledger[1].elapsed_seconds == 20


def test_select_rejects_unknown_option():
    with pytest.raises(ValueError):
        transition(_active(), Select(7))


def test_review_is_read_only_and_resume_discards_draft():
    state = transition(transition(_active(), Select(0)), Advance(remaining_seconds=4))
    state = transition(state, Select(1))

    reviewing = transition(state, Review(0))
    reviewing = transition(reviewing, Select(1))
    assert reviewing.review_index == 0
    assert reviewing.review_selection == 1
    assert reviewing.selection == 1
    assert reviewing.ledger[0].chosen_option == "x"

    with pytest.raises(InvalidTransition):
        transition(reviewing, Advance(remaining_seconds=1))

    resumed = transition(reviewing, Resume())
    assert resumed.review_index is None
    assert resumed.review_selection is None
    assert resumed.selection == 1
    assert resumed.ledger is state.ledger


def test_review_of_current_index_resumes_and_future_index_is_rejected():
    state = transition(transition(_active(), Select(0)), Advance(remaining_seconds=4))
    assert transition(transition(state, Review(0)), Review(1)).review_index is None
    with pytest.raises(ValueError):
        transition(state, Review(2))


def test_submit_flow_and_idempotence():
    state = transition(_active(), Expire())
    state = transition(state, Expire())
    submitting = transition(state, Submit())
    assert isinstance(submitting, Submitting)
    assert transition(submitting, Submit()) is submitting

    submitted = transition(submitting, SubmitSucceeded({"ok": True}))
    assert isinstance(submitted, Submitted)
    assert transition(submitted, Submit()) is submitted


def test_submit_only_from_completed():
    with pytest.raises(InvalidTransition):
        transition(_active(), Submit())


@pytest.mark.parametrize(
    "state",
    [
        Resolving("tok"),
        NotStarted("tok", QUIZ, QUESTIONS),
        _active(),
    ],
)
def test_fail_is_reachable_from_pre_submission_states(state):
    failed = transition(state, Fail(TransportError("down")))
    assert isinstance(failed, Failed)
    assert failed.failed_from == type(state).__name__


def test_failed_is_terminal():
    failed = transition(Resolving("tok"), Fail(TokenInvalid("gone")))
    for event in (Start(), Submit(), Fail(TransportError("again"))):
        with pytest.raises(InvalidTransition):
            transition(failed, event)
