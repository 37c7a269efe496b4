import pytest
from fastapi.testclient import TestClient

from client import QuizClient, QuizClientError
from conftest import BrokenStore, FakeLLM
from deps.providers import get_corpus, get_llm, get_store
from main import app
from quiz_state import HISTORY_KEY, SCORE_KEY, MemoryStorage, QuizState


@pytest.fixture
def quiz(overrides):
    overrides[get_corpus] = lambda: None
    storage = MemoryStorage()
    qc = QuizClient("http://testserver", QuizState.load(storage), http_client=TestClient(app))
    qc.storage = storage
    return qc


def test_full_round_updates_state(quiz, overrides, sample_problem, sample_feedback):
    overrides[get_llm] = lambda: FakeLLM(sample_problem)
    problem = quiz.new_problem("easy", "addition")
    assert problem["session_id"]

    overrides[get_llm] = lambda: FakeLLM(sample_feedback)
    verdict = quiz.submit("20")

    assert verdict.is_correct is True
    assert verdict.feedback == sample_feedback["feedback_text"]
    assert quiz.state.score == 1
    entry = quiz.state.history[0]
    assert entry.id == problem["session_id"]
    assert entry.user_answer == "20"
    assert entry.type == "addition" and entry.difficulty == "easy"
    assert entry.step_by_step_solution == sample_problem["step_by_step_solution"]


def test_wrong_answer_shows_solution(quiz, overrides, sample_problem, sample_feedback):
    overrides[get_llm] = lambda: FakeLLM(sample_problem)
    quiz.new_problem("medium", "addition")

    overrides[get_llm] = lambda: FakeLLM(sample_feedback)
    verdict = quiz.submit("19")

    assert verdict.is_correct is False
    assert "Solution:" in verdict.feedback
    assert sample_problem["step_by_step_solution"][0] in verdict.feedback
    assert "Correct Answer: 20" in verdict.feedback
    assert quiz.state.score == 0
    assert len(quiz.state.history) == 1


def test_submit_without_problem_fails(quiz):
    with pytest.raises(QuizClientError):
        quiz.submit("1")


def test_unsaved_problem_is_an_error(quiz, overrides, sample_problem):
    overrides[get_llm] = lambda: FakeLLM(sample_problem)
    overrides[get_store] = lambda: BrokenStore()
    with pytest.raises(QuizClientError) as exc:
        quiz.new_problem("easy", "addition")
    assert exc.value.status_code == 500
    assert quiz.current_problem is None


def test_reset(quiz, overrides, sample_problem, sample_feedback):
    overrides[get_llm] = lambda: FakeLLM(sample_problem)
    quiz.new_problem("easy", "addition")
    overrides[get_llm] = lambda: FakeLLM(sample_feedback)
    quiz.submit("20")

    quiz.reset()

    assert quiz.state.score == 0
    assert quiz.state.history == ()
    assert quiz.current_problem is None
    assert SCORE_KEY not in quiz.storage.keys()
    assert HISTORY_KEY not in quiz.storage.keys()
