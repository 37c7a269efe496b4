"""
Score and attempt history kept on the player's device.

This is a local ledger only. The server's sessions/submissions tables stay
the source of truth; nothing here is synchronised back.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

SCORE_KEY = "quizScore"
HISTORY_KEY = "quizHistory"
ITEMS_PER_PAGE = 5


class Storage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage:
    """A JSON object on disk; every write rewrites the file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            # Treat a broken file as empty
            logger.warning("Ignoring unreadable storage file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f)

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class HistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    problem: str
    user_answer: str = Field(alias="userAnswer")
    is_correct: bool = Field(alias="isCorrect")
    type: str
    difficulty: str
    correct_answer: float = Field(alias="correctAnswer")
    step_by_step_solution: list[str] = Field(default_factory=list)


class QuizSummary(BaseModel):
    total: int
    solved: int
    accuracy: float  # percent, 0 when nothing attempted


class QuizState:
    """
    Cumulative score plus an append-only attempt history.

    Build it once with `QuizState.load(storage)`; every mutation is written
    straight back to the storage adapter.
    """

    def __init__(
        self, storage: Storage, score: int = 0, history: list[HistoryEntry] | None = None
    ):
        self._storage = storage
        self._score = score
        self._history: list[HistoryEntry] = list(history or [])

    @classmethod
    def load(cls, storage: Storage) -> "QuizState":
        return cls(storage, _load_score(storage), _load_history(storage))

    @property
    def score(self) -> int:
        return self._score

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._history)

    def record(self, entry: HistoryEntry) -> None:
        if entry.is_correct:
            self._score += 1
            self._save_score()
        self._history.append(entry)
        self._save_history()

    def reset(self) -> None:
        self._score = 0
        self._history = []
        self._storage.remove_item(SCORE_KEY)
        self._storage.remove_item(HISTORY_KEY)

    def display_history(self) -> list[HistoryEntry]:
        """Newest first. The stored order is left alone."""
        return list(reversed(self._history))

    def page_count(self, per_page: int = ITEMS_PER_PAGE) -> int:
        return math.ceil(len(self._history) / per_page)

    def page(self, number: int, per_page: int = ITEMS_PER_PAGE) -> list[HistoryEntry]:
        start = (max(number, 1) - 1) * per_page
        return self.display_history()[start : start + per_page]

    def summary(self) -> QuizSummary:
        total = len(self._history)
        solved = sum(1 for h in self._history if h.is_correct)
        accuracy = round(solved / total * 100, 1) if total else 0.0
        return QuizSummary(total=total, solved=solved, accuracy=accuracy)

    def _save_score(self) -> None:
        self._storage.set_item(SCORE_KEY, str(self._score))

    def _save_history(self) -> None:
        payload = [h.model_dump(by_alias=True) for h in self._history]
        self._storage.set_item(HISTORY_KEY, json.dumps(payload))


def _load_score(storage: Storage) -> int:
    raw = storage.get_item(SCORE_KEY)
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        logger.warning("Discarding malformed stored score %r", raw)
        return 0


def _load_history(storage: Storage) -> list[HistoryEntry]:
    raw = storage.get_item(HISTORY_KEY)
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed stored history")
        return []
    if not isinstance(items, list):
        return []

    history: list[HistoryEntry] = []
    for item in items:
        try:
            history.append(HistoryEntry.model_validate(item))
        except ValidationError:
            # Skip invalid records
            continue
    return history
