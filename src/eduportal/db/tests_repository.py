"""Repository functions for scheduled tests and test attempts."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from eduportal.db.database import NotFoundError, get_db, new_id

logger = structlog.get_logger(__name__)


@dataclass
class TestRecord:
    """Scheduled test."""

    __test__ = False  # not a pytest class

    id: str
    title: str
    scheduled_date: str
    assigned_to: list[str] = field(default_factory=list)
    created_at: str = ""


@dataclass
class AttemptAnswer:
    """A student's chosen letter for one question."""

    question_id: int
    letter: str

    def to_dict(self) -> dict[str, Any]:
        return {"question_id": self.question_id, "letter": self.letter}


@dataclass
class TestAttemptRecord:
    """One completed test."""

    __test__ = False

    id: str
    student_id: str
    test_id: str
    score: int
    answers: list[AttemptAnswer]
    created_at: str
    test_title: str = ""


def _row_to_test(row) -> TestRecord:
    return TestRecord(
        id=row["id"],
        title=row["title"],
        scheduled_date=row["scheduled_date"],
        assigned_to=json.loads(row["assigned_to"] or "[]"),
        created_at=row["created_at"],
    )


def _row_to_attempt(row) -> TestAttemptRecord:
    return TestAttemptRecord(
        id=row["id"],
        student_id=row["student_id"],
        test_id=row["test_id"],
        score=row["score"],
        answers=[AttemptAnswer(**a) for a in json.loads(row["answers"] or "[]")],
        created_at=row["created_at"],
        test_title=row["title"] if "title" in row.keys() else "",
    )


# =============================================================================
# TESTS
# =============================================================================


def insert_test(title: str, scheduled_date: str, assigned_to: list[str] | None = None) -> TestRecord:
    """Schedule a test."""
    test_id = new_id()
    with get_db() as conn:
        conn.execute(
            "INSERT INTO tests (id, title, scheduled_date, assigned_to) VALUES (?, ?, ?, ?)",
            (test_id, title, scheduled_date, json.dumps(assigned_to or [])),
        )
    logger.debug("tests.inserted", id=test_id)
    test = get_test(test_id)
    assert test is not None
    return test


def get_test(test_id: str) -> TestRecord | None:
    """Get a test by id."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM tests WHERE id = ?", (test_id,)).fetchone()
    return _row_to_test(row) if row else None


def list_tests() -> list[TestRecord]:
    """All tests ordered by scheduled date ascending."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM tests ORDER BY scheduled_date ASC, title"
        ).fetchall()
    return [_row_to_test(r) for r in rows]


def update_test(
    test_id: str, title: str, scheduled_date: str, assigned_to: list[str]
) -> TestRecord:
    """Overwrite a test's fields.

    Raises:
        NotFoundError: If the test doesn't exist
    """
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE tests SET title = ?, scheduled_date = ?, assigned_to = ? WHERE id = ?",
            (title, scheduled_date, json.dumps(assigned_to), test_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Teste", test_id)
    test = get_test(test_id)
    assert test is not None
    return test


def delete_test(test_id: str) -> bool:
    """Delete a test (question links and attempts cascade)."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM tests WHERE id = ?", (test_id,))
    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("tests.deleted", id=test_id)
    return deleted


def count_tests() -> int:
    """Total scheduled tests."""
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM tests").fetchone()[0]


def get_test_answer_key(test_id: str) -> dict[int, str]:
    """Map question id -> correct letter for the questions of a test."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT q.id, q.correct FROM test_questions tq
            JOIN questions q ON q.id = tq.question_id
            WHERE tq.test_id = ?
            ORDER BY q.id
            """,
            (test_id,),
        ).fetchall()
    return {r["id"]: r["correct"] for r in rows}


def get_test_question_ids(test_id: str) -> list[int]:
    """Question ids attached to a test."""
    return list(get_test_answer_key(test_id))


# =============================================================================
# ATTEMPTS
# =============================================================================


def insert_attempt(
    student_id: str, test_id: str, score: int, answers: list[AttemptAnswer]
) -> TestAttemptRecord:
    """Store a graded attempt."""
    attempt_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO test_attempts (id, student_id, test_id, score, answers)
            VALUES (?, ?, ?, ?, ?)
            """,
            (attempt_id, student_id, test_id, score, json.dumps([a.to_dict() for a in answers])),
        )
    logger.info("attempts.inserted", id=attempt_id, test_id=test_id, score=score)
    attempt = get_attempt(attempt_id)
    assert attempt is not None
    return attempt


def get_attempt(attempt_id: str) -> TestAttemptRecord | None:
    """Get an attempt with its test title."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT a.*, t.title FROM test_attempts a
            JOIN tests t ON t.id = a.test_id
            WHERE a.id = ?
            """,
            (attempt_id,),
        ).fetchone()
    return _row_to_attempt(row) if row else None


def list_student_attempts(student_id: str) -> list[TestAttemptRecord]:
    """Attempts of a student, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT a.*, t.title FROM test_attempts a
            JOIN tests t ON t.id = a.test_id
            WHERE a.student_id = ?
            ORDER BY a.created_at DESC, a.rowid DESC
            """,
            (student_id,),
        ).fetchall()
    return [_row_to_attempt(r) for r in rows]
