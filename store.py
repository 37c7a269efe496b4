from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from db import SessionLocal
from models import ProblemSession, Submission


class SessionStore:
    """
    Thin repository over the two quiz tables.

    Errors from the database are not caught here; callers decide whether a
    failure is fatal (session lookup) or only worth logging (submissions).
    """

    def __init__(self, session_factory: sessionmaker[Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def create_session(self, problem_text: str, correct_answer: float) -> str:
        with self._session_factory() as db:
            row = ProblemSession(problem_text=problem_text, correct_answer=correct_answer)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row.id

    def get_session(self, session_id: str) -> ProblemSession | None:
        with self._session_factory() as db:
            return db.get(ProblemSession, session_id)

    def record_submission(
        self,
        session_id: str,
        user_answer: float,
        is_correct: bool,
        feedback_text: str,
    ) -> int:
        with self._session_factory() as db:
            row = Submission(
                session_id=session_id,
                user_answer=user_answer,
                is_correct=is_correct,
                feedback_text=feedback_text,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row.id

    def list_submissions(self, session_id: str) -> list[Submission]:
        with self._session_factory() as db:
            stmt = (
                select(Submission)
                .where(Submission.session_id == session_id)
                .order_by(Submission.id)
            )
            return list(db.scalars(stmt).all())
