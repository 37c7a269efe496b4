from __future__ import annotations

import os

from sqlalchemy import Engine, MetaData, create_engine, inspect
from sqlalchemy.engine import Connection
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def normalize_database_url(url: str) -> str:
    """Map hosted-Postgres style URLs onto the psycopg 3 dialect."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        url = "postgresql+psycopg://" + url[len("postgresql://") :]
    return url


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL", "sqlite:///./quiz.db"))

# Migrations refer to constraints by these names; they must not drift.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _engine_options(url: str) -> dict:
    options: dict = {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 0}
    if url.startswith("sqlite"):
        # store calls run on threadpool workers, not the thread that connected
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def missing_tables(bind: Engine | Connection | None = None) -> list[str]:
    """Tables declared on Base that the database does not have yet."""
    present = set(inspect(bind if bind is not None else engine).get_table_names())
    return sorted(set(Base.metadata.tables) - present)
