from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from corpus import CorpusLookup
from deps.providers import get_corpus, get_llm, get_reference_urls, get_store
from generation import InvalidProblemRequest, create_problem
from grading import SessionNotFound, grade_submission, parse_answer
from llm import GenerationError, Generator
from schemas.problems import (
    ErrorResponse,
    ProblemResponse,
    ProblemRequest,
    SubmitRequest,
    SubmitResponse,
)
from store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/math-problem", tags=["problems"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "",
    response_model=ProblemResponse,
    # `error` only appears on the degraded (unsaved) response
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_problem(
    req: ProblemRequest,
    llm: Generator = Depends(get_llm),
    store: SessionStore = Depends(get_store),
    corpus: CorpusLookup | None = Depends(get_corpus),
    reference_urls: list[str] = Depends(get_reference_urls),
):
    try:
        result = await create_problem(
            req.difficulty,
            req.problemType,
            llm=llm,
            store=store,
            corpus=corpus,
            reference_urls=reference_urls,
        )
    except InvalidProblemRequest as e:
        return _error(400, str(e))
    except GenerationError:
        logger.error("Problem generation exhausted its retries")
        return _error(500, "Failed to generate math problem after multiple retries.")

    body = ProblemResponse(
        problem_text=result.problem_text,
        final_answer=result.final_answer,
        session_id=result.session_id,
        difficulty=req.difficulty,
        problem_type=req.problemType,
        hint_text=result.hint_text,
        step_by_step_solution=result.step_by_step_solution,
        error=result.error,
    )
    if not result.saved:
        # content is still useful, but it can never be graded
        return JSONResponse(status_code=500, content=body.model_dump())
    return body


@router.post(
    "/submit",
    response_model=SubmitResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def submit_answer(
    req: SubmitRequest,
    llm: Generator = Depends(get_llm),
    store: SessionStore = Depends(get_store),
):
    if not req.session_id or req.user_answer is None:
        return _error(400, "Missing session_id or user_answer.")

    answer = parse_answer(req.user_answer)
    if answer is None:
        return _error(400, "User answer must be a valid number.")

    try:
        result = await grade_submission(req.session_id, answer, llm=llm, store=store)
    except SessionNotFound:
        return _error(404, "Session not found or database error.")
    except Exception:
        logger.exception("Unexpected error while grading session %s", req.session_id)
        return _error(500, "An unexpected error occurred during submission processing.")

    return SubmitResponse(
        is_correct=result.is_correct,
        feedback_text=result.feedback_text,
        explanation_hint=result.explanation_hint,
    )
