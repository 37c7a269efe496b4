from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from llm import FieldSpec, GenerationError, Generator, ResponseShape
from prompts import FEEDBACK_SYSTEM_PROMPT, feedback_user_prompt
from store import SessionStore

logger = logging.getLogger(__name__)

FEEDBACK_ATTEMPTS = 3

FALLBACK_CORRECT = "Great job! Your answer is correct."
FALLBACK_INCORRECT = "Your answer was incorrect. Keep trying!"

FEEDBACK_SHAPE = ResponseShape(
    fields=(
        FieldSpec("feedback_text", "string", "Personalized feedback and encouragement."),
        FieldSpec(
            "explanation_hint",
            "string",
            "A brief hint or explanation of the next step, if incorrect, "
            "or a brief affirmation if correct.",
        ),
    )
)


class SessionNotFound(LookupError):
    pass


@dataclass
class GradeResult:
    is_correct: bool
    feedback_text: str
    explanation_hint: str
    # False when the model never answered and the canned text was used
    generated: bool = True

    @property
    def combined_feedback(self) -> str:
        return f"{self.feedback_text} {self.explanation_hint}".strip()


def parse_answer(raw: Any) -> float | None:
    """Return `raw` as a finite float, or None if it isn't one."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        val = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(val):
        return None
    return val


def answers_match(user_answer: float, correct_answer: float) -> bool:
    # exact on purpose: no tolerance for near-equal decimals
    return float(user_answer) == float(correct_answer)


def fallback_feedback(is_correct: bool) -> GradeResult:
    return GradeResult(
        is_correct=is_correct,
        feedback_text=FALLBACK_CORRECT if is_correct else FALLBACK_INCORRECT,
        explanation_hint="",
        generated=False,
    )


async def grade_submission(
    session_id: str,
    user_answer: float,
    *,
    llm: Generator,
    store: SessionStore,
) -> GradeResult:
    try:
        session = await run_in_threadpool(store.get_session, session_id)
    except SQLAlchemyError:
        logger.exception("Session lookup failed for %s", session_id)
        session = None
    if session is None:
        raise SessionNotFound(session_id)

    correct_answer = float(session.correct_answer)
    is_correct = answers_match(user_answer, correct_answer)

    try:
        data = await llm.generate(
            FEEDBACK_SYSTEM_PROMPT,
            feedback_user_prompt(session.problem_text, correct_answer, user_answer),
            FEEDBACK_SHAPE,
            max_attempts=FEEDBACK_ATTEMPTS,
        )
        result = GradeResult(
            is_correct=is_correct,
            feedback_text=data["feedback_text"],
            explanation_hint=data["explanation_hint"],
        )
    except GenerationError:
        logger.warning("Feedback generation exhausted for session %s; using fallback", session_id)
        result = fallback_feedback(is_correct)

    try:
        await run_in_threadpool(
            store.record_submission, session_id, user_answer, is_correct, result.combined_feedback
        )
    except SQLAlchemyError:
        logger.exception("Failed to record submission for session %s", session_id)

    return result
