# schemas/problems.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

# ---------- Generate ----------


class ProblemRequest(BaseModel):
    # both optional here; generation.check_problem_request rejects with a readable message
    difficulty: str | None = None
    problemType: str | None = None


class ProblemResponse(BaseModel):
    problem_text: str
    final_answer: int | float
    session_id: str | None = None
    difficulty: str
    problem_type: str
    hint_text: str
    step_by_step_solution: list[str]
    # set only when the session could not be saved
    error: str | None = None


# ---------- Submit ----------


class SubmitRequest(BaseModel):
    session_id: str | None = None
    # number or numeric string; parsed by the route
    user_answer: Any = None


class SubmitResponse(BaseModel):
    is_correct: bool
    feedback_text: str
    explanation_hint: str


class ErrorResponse(BaseModel):
    error: str
