"""Repository functions for learning paths and their ordered steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from eduportal.db.database import get_db, new_id

logger = structlog.get_logger(__name__)


@dataclass
class PathStep:
    """One step of a learning path."""

    step: int
    title: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step, "title": self.title, "description": self.description}


@dataclass
class LearningPathRecord:
    """Learning path with its steps in order."""

    id: str
    title: str
    description: str
    duration: str
    target_audience: str
    steps: list[PathStep] = field(default_factory=list)
    student_id: str | None = None
    created_at: str = ""


def insert_learning_path(
    title: str,
    description: str,
    duration: str,
    target_audience: str,
    steps: list[PathStep],
    student_id: str | None = None,
) -> LearningPathRecord:
    """Insert a path and its steps in one transaction."""
    path_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO learning_paths
                (id, title, description, duration, target_audience, student_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (path_id, title, description, duration, target_audience, student_id),
        )
        conn.executemany(
            """
            INSERT INTO learning_path_steps (path_id, step, title, description)
            VALUES (?, ?, ?, ?)
            """,
            [(path_id, s.step, s.title, s.description) for s in steps],
        )

    logger.info("learning_paths.inserted", id=path_id, steps=len(steps))
    path = get_learning_path(path_id)
    assert path is not None
    return path


def _load_steps(conn, path_id: str) -> list[PathStep]:
    rows = conn.execute(
        "SELECT step, title, description FROM learning_path_steps WHERE path_id = ? ORDER BY step",
        (path_id,),
    ).fetchall()
    return [PathStep(step=r["step"], title=r["title"], description=r["description"]) for r in rows]


def _row_to_record(conn, row) -> LearningPathRecord:
    return LearningPathRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        duration=row["duration"],
        target_audience=row["target_audience"],
        steps=_load_steps(conn, row["id"]),
        student_id=row["student_id"],
        created_at=row["created_at"],
    )


def get_learning_path(path_id: str) -> LearningPathRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM learning_paths WHERE id = ?", (path_id,)).fetchone()
        return _row_to_record(conn, row) if row else None


def list_learning_paths(student_id: str | None = None) -> list[LearningPathRecord]:
    """Paths newest first; a student sees unassigned paths and their own."""
    query = "SELECT * FROM learning_paths"
    params: tuple = ()
    if student_id:
        query += " WHERE student_id IS NULL OR student_id = ?"
        params = (student_id,)
    query += " ORDER BY created_at DESC, rowid DESC"
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
        return [_row_to_record(conn, r) for r in rows]


def delete_learning_path(path_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM learning_paths WHERE id = ?", (path_id,))
    return cursor.rowcount > 0


def count_learning_paths() -> int:
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM learning_paths").fetchone()[0]
