# routers/health.py
from fastapi import APIRouter, HTTPException
from sqlalchemy import text

import models  # noqa: F401  (registers the quiz tables on Base.metadata)
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from db import engine, missing_tables

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/db")
def health_db():
    """Database reachable and both quiz tables present."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            missing = missing_tables(conn)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"db_error: {type(e).__name__}: {e}")
    return {"ok": not missing, "missing_tables": missing}


@router.get("/migrations")
def health_migrations():
    try:
        head = ScriptDirectory.from_config(Config("alembic.ini")).get_current_head()
    except Exception as e:
        return {"ok": False, "error": f"no_migration_scripts: {e}", "head": None, "current": None}

    try:
        with engine.connect() as conn:
            current = MigrationContext.configure(conn).get_current_revision()
    except Exception as e:
        return {"ok": False, "error": f"db_connect_failed: {e}", "head": head, "current": None}

    return {"ok": current == head, "head": head, "current": current}
