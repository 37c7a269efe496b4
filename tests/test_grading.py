import asyncio
import math
import threading

import pytest

from conftest import BrokenStore, FakeLLM
from grading import (
    FALLBACK_CORRECT,
    FALLBACK_INCORRECT,
    FEEDBACK_ATTEMPTS,
    SessionNotFound,
    answers_match,
    grade_submission,
    parse_answer,
)
from llm import GenerationError
from store import SessionStore


@pytest.mark.parametrize(
    "raw, expected",
    [(5, 5.0), ("5", 5.0), (" 5.0 ", 5.0), ("-3.25", -3.25), (0, 0.0), (7.5, 7.5)],
)
def test_parse_answer_accepts_numbers(raw, expected):
    assert parse_answer(raw) == expected


@pytest.mark.parametrize(
    "raw", [None, "", "  ", "abc", "nan", "inf", math.inf, True, [5], 10**400, "1" + "0" * 400]
)
def test_parse_answer_rejects_non_numbers(raw):
    assert parse_answer(raw) is None


def test_answers_match_is_exact():
    assert answers_match(5, 5)
    assert answers_match(5, 5.0)
    assert not answers_match(5, 5.01)
    # no tolerance: a rounded division result does not match
    assert not answers_match(0.33, 1 / 3)


def test_correct_answer_uses_generated_feedback(store, sample_feedback):
    sid = store.create_session("What is 2 + 3?", 5)
    llm = FakeLLM(sample_feedback)

    result = asyncio.run(grade_submission(sid, 5.0, llm=llm, store=store))

    assert result.is_correct is True
    assert result.generated
    assert result.feedback_text == sample_feedback["feedback_text"]
    assert result.explanation_hint == sample_feedback["explanation_hint"]
    assert llm.calls[0]["max_attempts"] == FEEDBACK_ATTEMPTS == 3
    assert '"What is 2 + 3?"' in llm.calls[0]["user_prompt"]
    assert "The correct answer is: 5" in llm.calls[0]["user_prompt"]

    subs = store.list_submissions(sid)
    assert len(subs) == 1
    assert subs[0].is_correct is True
    assert subs[0].user_answer == 5.0
    assert subs[0].feedback_text == (
        f"{sample_feedback['feedback_text']} {sample_feedback['explanation_hint']}"
    )
    assert subs[0].created_at is not None


def test_near_miss_is_incorrect(store, sample_feedback):
    sid = store.create_session("What is 10 / 2?", 5)
    result = asyncio.run(grade_submission(sid, 5.01, llm=FakeLLM(sample_feedback), store=store))
    assert result.is_correct is False


@pytest.mark.parametrize(
    "answer, correct, expected_text",
    [(5, True, FALLBACK_CORRECT), (6, False, FALLBACK_INCORRECT)],
)
def test_exhausted_feedback_falls_back_and_still_records(store, answer, correct, expected_text):
    sid = store.create_session("What is 2 + 3?", 5)
    llm = FakeLLM(GenerationError("exhausted"))

    result = asyncio.run(grade_submission(sid, answer, llm=llm, store=store))

    assert result.is_correct is correct
    assert result.feedback_text == expected_text
    assert result.explanation_hint == ""
    assert not result.generated

    subs = store.list_submissions(sid)
    assert len(subs) == 1
    assert subs[0].feedback_text == expected_text


def test_unknown_session_is_not_found_and_not_recorded(store):
    llm = FakeLLM()
    with pytest.raises(SessionNotFound):
        asyncio.run(grade_submission("does-not-exist", 1, llm=llm, store=store))
    assert llm.calls == []
    assert store.list_submissions("does-not-exist") == []


def test_record_failure_does_not_change_verdict(store, sample_feedback):
    sid = store.create_session("What is 4 * 4?", 16)
    broken = BrokenStore()

    result = asyncio.run(grade_submission(sid, 16, llm=FakeLLM(sample_feedback), store=broken))

    assert result.is_correct is True
    assert result.feedback_text == sample_feedback["feedback_text"]
    assert store.list_submissions(sid) == []


class ThreadRecordingStore(SessionStore):
    def __init__(self):
        super().__init__()
        self.threads = []

    def get_session(self, session_id):
        self.threads.append(threading.get_ident())
        return super().get_session(session_id)

    def record_submission(self, *args):
        self.threads.append(threading.get_ident())
        return super().record_submission(*args)


def test_store_calls_run_off_the_event_loop(store, sample_feedback):
    sid = store.create_session("What is 9 - 4?", 5)
    recording = ThreadRecordingStore()

    async def run():
        loop_thread = threading.get_ident()
        await grade_submission(sid, 5, llm=FakeLLM(sample_feedback), store=recording)
        return loop_thread

    loop_thread = asyncio.run(run())

    assert len(recording.threads) == 2
    assert loop_thread not in recording.threads
    assert len(store.list_submissions(sid)) == 1
