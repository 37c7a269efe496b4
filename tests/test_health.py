from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from db import missing_tables
from main import app

client = TestClient(app)


def test_health_db_reports_quiz_tables():
    r = client.get("/health/db")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "missing_tables": []}


def test_missing_tables_on_empty_database():
    empty = create_engine("sqlite://")
    assert missing_tables(empty) == ["math_problem_sessions", "math_problem_submissions"]


def test_health_migrations_reports_head():
    r = client.get("/health/migrations")
    assert r.status_code == 200
    b = r.json()
    assert b["head"] == "0001_quiz_sessions"
    # tables in the test database come from create_all, not alembic
    assert b["current"] is None
    assert b["ok"] is False
