from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from quiz_state import HistoryEntry, QuizState

logger = logging.getLogger(__name__)


class QuizClientError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class Verdict:
    is_correct: bool
    feedback: str
    explanation_hint: str


class QuizClient:
    """
    Talks to the problem API on behalf of one player and keeps their
    QuizState up to date.
    """

    def __init__(
        self,
        base_url: str,
        state: QuizState,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.state = state
        self.current_problem: dict[str, Any] | None = None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=None)

    def close(self) -> None:
        self._http.close()

    def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            r = self._http.post(path, json=body)
        except httpx.HTTPError as e:
            raise QuizClientError(f"Request to {path} failed: {e}") from e
        try:
            data = r.json()
        except ValueError:
            data = {}
        if r.is_error or data.get("error"):
            message = data.get("error") or f"HTTP {r.status_code}"
            logger.warning("%s -> %s: %s", path, r.status_code, message)
            raise QuizClientError(message, r.status_code)
        return data

    def new_problem(self, difficulty: str, problem_type: str) -> dict[str, Any]:
        self.current_problem = None
        data = self._post(
            "/api/math-problem", {"difficulty": difficulty, "problemType": problem_type}
        )
        self.current_problem = data
        return data

    def submit(self, answer: str) -> Verdict:
        problem = self.current_problem
        if problem is None:
            raise QuizClientError("No problem to answer; request one first.")

        result = self._post(
            "/api/math-problem/submit",
            {"session_id": problem["session_id"], "user_answer": answer},
        )
        is_correct = bool(result["is_correct"])

        feedback = result["feedback_text"]
        if not is_correct:
            steps = "\n".join(problem["step_by_step_solution"])
            feedback += f"\n\nSolution: \n{steps}\n\nCorrect Answer: {problem['final_answer']}"

        self.state.record(
            HistoryEntry(
                id=problem["session_id"],
                problem=problem["problem_text"],
                user_answer=answer,
                is_correct=is_correct,
                type=problem["problem_type"],
                difficulty=problem["difficulty"],
                correct_answer=problem["final_answer"],
                step_by_step_solution=problem["step_by_step_solution"],
            )
        )
        return Verdict(
            is_correct=is_correct,
            feedback=feedback,
            explanation_hint=result.get("explanation_hint", ""),
        )

    def reset(self) -> None:
        self.state.reset()
        self.current_problem = None
