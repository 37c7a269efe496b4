from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from corpus import CorpusLookup, fetch_reference_context
from llm import FieldSpec, Generator, ResponseShape
from prompts import problem_system_prompt, problem_user_prompt
from store import SessionStore

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")
PROBLEM_TYPES = ("addition", "subtraction", "multiplication", "division")

GENERATION_ATTEMPTS = 5
SAVE_FAILED_MSG = "Problem generated, but failed to save session."

PROBLEM_SHAPE = ResponseShape(
    fields=(
        FieldSpec("problem_text", "string", "The math word problem description."),
        FieldSpec("final_answer", "number", "The single, numerical final answer."),
        FieldSpec("hint_text", "string", "A short, helpful hint for the user."),
        FieldSpec(
            "step_by_step_solution",
            "string_array",
            "Each step of the detailed solution in order.",
            non_empty=True,
        ),
    )
)


class InvalidProblemRequest(ValueError):
    """Difficulty or problem type missing or not one we generate."""


def check_problem_request(difficulty: str | None, problem_type: str | None) -> None:
    if not difficulty or not problem_type:
        raise InvalidProblemRequest("Missing difficulty or problemType in request body.")
    if difficulty not in DIFFICULTIES:
        raise InvalidProblemRequest(f"difficulty must be one of: {', '.join(DIFFICULTIES)}.")
    if problem_type not in PROBLEM_TYPES:
        raise InvalidProblemRequest(
            f"problemType must be one of: {', '.join(PROBLEM_TYPES)}."
        )


@dataclass
class ProblemResult:
    problem_text: str
    final_answer: float
    hint_text: str
    step_by_step_solution: list[str]
    session_id: str | None = None
    error: str | None = None

    @property
    def saved(self) -> bool:
        return self.session_id is not None


async def create_problem(
    difficulty: str,
    problem_type: str,
    *,
    llm: Generator,
    store: SessionStore,
    corpus: CorpusLookup | None = None,
    reference_urls: Sequence[str] = (),
) -> ProblemResult:
    """
    Generate one word problem and open a session for it.

    Raises InvalidProblemRequest before any outside call for bad inputs, and
    llm.GenerationError when the API never produced a valid problem;
    nothing is persisted in that case. A failed save still returns the
    problem, with session_id None and `error` set.
    """
    check_problem_request(difficulty, problem_type)
    context = await fetch_reference_context(corpus, reference_urls)

    data = await llm.generate(
        problem_system_prompt(difficulty, problem_type, context),
        problem_user_prompt(difficulty, problem_type),
        PROBLEM_SHAPE,
        max_attempts=GENERATION_ATTEMPTS,
    )
    result = ProblemResult(
        problem_text=data["problem_text"],
        final_answer=data["final_answer"],
        hint_text=data["hint_text"],
        step_by_step_solution=list(data["step_by_step_solution"]),
    )

    try:
        result.session_id = await run_in_threadpool(
            store.create_session, result.problem_text, result.final_answer
        )
    except SQLAlchemyError:
        logger.exception("Failed to save problem session")
        result.error = SAVE_FAILED_MSG
        return result

    logger.info("Created session %s (%s, %s)", result.session_id, difficulty, problem_type)
    return result
