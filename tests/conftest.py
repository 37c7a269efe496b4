import os
import tempfile

# Point the app at a throwaway SQLite file before db.py is imported anywhere.
_TMP_DIR = tempfile.mkdtemp(prefix="math-quiz-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'quiz.db')}"

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

import models  # noqa: E402,F401
from db import Base, engine  # noqa: E402
from llm import GeminiClient, GenerationError  # noqa: E402
from main import app  # noqa: E402
from store import SessionStore  # noqa: E402

Base.metadata.create_all(engine)

SAMPLE_PROBLEM = {
    "problem_text": "Maya has 12 apples and buys 8 more. How many apples does she have?",
    "final_answer": 20,
    "hint_text": "Add the apples she buys to the ones she already has.",
    "step_by_step_solution": ["1. Add the apples: 12 + 8 = 20"],
}

SAMPLE_FEEDBACK = {
    "feedback_text": "Nice work, that's exactly right!",
    "explanation_hint": "Adding 12 and 8 gives 20.",
}


class FakeLLM:
    """Scripted stand-in for GeminiClient: returns or raises one item per call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def generate(self, system_prompt, user_prompt, shape, max_attempts=5):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "shape": shape,
                "max_attempts": max_attempts,
            }
        )
        if not self.responses:
            raise GenerationError("no scripted response left")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return shape.validate(nxt)


class BrokenStore(SessionStore):
    """Reads work normally; every write fails like a lost connection."""

    def create_session(self, problem_text, correct_answer):
        raise OperationalError("INSERT", {}, Exception("connection lost"))

    def record_submission(self, session_id, user_answer, is_correct, feedback_text):
        raise OperationalError("INSERT", {}, Exception("connection lost"))


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def gemini_body(payload_text):
    return {"candidates": [{"content": {"parts": [{"text": payload_text}]}}]}


@pytest.fixture
def sample_problem():
    return dict(SAMPLE_PROBLEM)


@pytest.fixture
def sample_feedback():
    return dict(SAMPLE_FEEDBACK)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def failing_gemini(sleeps):
    """A real GeminiClient whose upstream always answers 503."""

    def handler(request):
        return httpx.Response(503, json={"error": {"message": "overloaded"}})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiClient(api_key="test-key", http_client=http, sleep=sleeps)


@pytest.fixture
def overrides():
    """Set app.dependency_overrides for one test and always clear them."""
    yield app.dependency_overrides
    app.dependency_overrides.clear()
