from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


def _new_session_id() -> str:
    return uuid.uuid4().hex


class ProblemSession(Base):
    __tablename__ = "math_problem_sessions"
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_session_id)
    problem_text: Mapped[str] = mapped_column(Text)
    correct_answer: Mapped[float] = mapped_column(Float)


class Submission(Base):
    __tablename__ = "math_problem_submissions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("math_problem_sessions.id"), index=True
    )
    user_answer: Mapped[float] = mapped_column(Float)
    is_correct: Mapped[bool] = mapped_column(Boolean)
    feedback_text: Mapped[str] = mapped_column(Text, default="")
    # assigned by the database
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=sa.func.now()
    )
