"""Repository functions for the question bank.

Questions keep the integer id they were given by the source document when
there is one, so re-importing the same exam upserts instead of duplicating.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from eduportal.db.database import NotFoundError, get_db

logger = structlog.get_logger(__name__)


@dataclass
class Choice:
    """One lettered alternative."""

    letter: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"letter": self.letter, "text": self.text}


@dataclass
class Question:
    """A multiple-choice question, stored or freshly extracted."""

    id: int
    statement: str
    choices: list[Choice] = field(default_factory=list)
    correct: str = ""
    resolution: str = ""
    hint: str = ""
    discipline_id: str | None = None
    subject_id: str | None = None
    lote: str = ""
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "statement": self.statement,
            "choices": [c.to_dict() for c in self.choices],
            "correct": self.correct,
            "resolution": self.resolution,
            "hint": self.hint,
            "discipline_id": self.discipline_id,
            "subject_id": self.subject_id,
            "lote": self.lote,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Build from a dictionary (request body or AI output)."""
        return cls(
            id=int(data["id"]),
            statement=data.get("statement", ""),
            choices=[
                Choice(letter=str(c.get("letter", "")), text=str(c.get("text", "")))
                for c in data.get("choices") or []
            ],
            correct=(data.get("correct") or "").strip().upper(),
            resolution=data.get("resolution") or "",
            hint=data.get("hint") or "",
            discipline_id=data.get("discipline_id"),
            subject_id=data.get("subject_id"),
            lote=data.get("lote") or "",
        )


@dataclass
class QuestionFilter:
    """Question-bank list filters."""

    search: str = ""
    discipline_id: str | None = None
    subject_id: str | None = None
    lote: str | None = None
    limit: int = 50
    offset: int = 0


def _row_to_question(row) -> Question:
    return Question(
        id=row["id"],
        statement=row["statement"],
        choices=[Choice(**c) for c in json.loads(row["choices"] or "[]")],
        correct=row["correct"],
        resolution=row["resolution"],
        hint=row["hint"],
        discipline_id=row["discipline_id"],
        subject_id=row["subject_id"],
        lote=row["lote"],
        created_at=row["created_at"],
    )


def _question_params(q: Question) -> tuple:
    return (
        q.id,
        q.statement,
        json.dumps([c.to_dict() for c in q.choices], ensure_ascii=False),
        q.correct,
        q.resolution,
        q.hint,
        q.discipline_id,
        q.subject_id,
        q.lote,
    )


UPSERT_SQL = """
    INSERT INTO questions (
        id, statement, choices, correct, resolution, hint,
        discipline_id, subject_id, lote
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        statement = excluded.statement,
        choices = excluded.choices,
        correct = excluded.correct,
        resolution = excluded.resolution,
        hint = excluded.hint,
        discipline_id = excluded.discipline_id,
        subject_id = excluded.subject_id,
        lote = excluded.lote
"""


def upsert_questions(questions: Iterable[Question]) -> int:
    """Upsert questions on id in a single transaction.

    Returns:
        Number of rows written

    Raises:
        sqlite3.Error: On any constraint violation (whole call rolls back)
    """
    params = [_question_params(q) for q in questions]
    with get_db() as conn:
        conn.executemany(UPSERT_SQL, params)
    return len(params)


def get_question(question_id: int) -> Question | None:
    """Get one question by id."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM questions WHERE id = ?", (question_id,)
        ).fetchone()
    return _row_to_question(row) if row else None


def list_questions(filters: QuestionFilter | None = None) -> list[Question]:
    """List questions newest first, filtered.

    Args:
        filters: Search text, academic destination, batch name, paging
    """
    filters = filters or QuestionFilter()
    clauses: list[str] = []
    params: list[Any] = []

    if filters.search.strip():
        clauses.append("statement LIKE ?")
        params.append(f"%{filters.search.strip()}%")
    if filters.discipline_id:
        clauses.append("discipline_id = ?")
        params.append(filters.discipline_id)
    if filters.subject_id:
        clauses.append("subject_id = ?")
        params.append(filters.subject_id)
    if filters.lote:
        clauses.append("lote = ?")
        params.append(filters.lote)

    query = "SELECT * FROM questions"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
    params.extend([filters.limit, filters.offset])

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_question(r) for r in rows]


def list_subject_questions(subject_id: str) -> list[Question]:
    """All questions attached to a subject, in id order."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM questions WHERE subject_id = ? ORDER BY id", (subject_id,)
        ).fetchall()
    return [_row_to_question(r) for r in rows]


def count_questions_by_subject(subject_ids: list[str]) -> dict[str, int]:
    """Question counts per subject id."""
    if not subject_ids:
        return {}
    placeholders = ",".join("?" * len(subject_ids))
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT subject_id, COUNT(*) AS n FROM questions "
            f"WHERE subject_id IN ({placeholders}) GROUP BY subject_id",
            tuple(subject_ids),
        ).fetchall()
    return {r["subject_id"]: r["n"] for r in rows}


def count_questions() -> int:
    """Total questions in the bank."""
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]


def list_lotes() -> list[str]:
    """Distinct non-empty batch names, alphabetically."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT DISTINCT lote FROM questions WHERE lote != '' ORDER BY lote"
        ).fetchall()
    return [r["lote"] for r in rows]


def update_question(question: Question) -> Question:
    """Overwrite an existing question.

    Raises:
        NotFoundError: If the question doesn't exist
    """
    params = _question_params(question)
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE questions SET
                statement = ?, choices = ?, correct = ?, resolution = ?, hint = ?,
                discipline_id = ?, subject_id = ?, lote = ?
            WHERE id = ?
            """,
            (*params[1:], question.id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Questão", question.id)

    logger.debug("questions.updated", id=question.id)
    stored = get_question(question.id)
    assert stored is not None
    return stored


def delete_questions(question_ids: list[int]) -> int:
    """Delete many questions. Returns the number deleted."""
    if not question_ids:
        return 0
    placeholders = ",".join("?" * len(question_ids))
    with get_db() as conn:
        cursor = conn.execute(
            f"DELETE FROM questions WHERE id IN ({placeholders})", tuple(question_ids)
        )
    logger.info("questions.deleted", count=cursor.rowcount)
    return cursor.rowcount


def link_to_subject(question_ids: list[int], discipline_id: str, subject_id: str) -> int:
    """Move questions to another discipline/subject. Returns rows updated."""
    if not question_ids:
        return 0
    placeholders = ",".join("?" * len(question_ids))
    with get_db() as conn:
        cursor = conn.execute(
            f"UPDATE questions SET discipline_id = ?, subject_id = ? WHERE id IN ({placeholders})",
            (discipline_id, subject_id, *question_ids),
        )
    logger.info("questions.linked_subject", count=cursor.rowcount, subject_id=subject_id)
    return cursor.rowcount


def link_to_tests(question_ids: list[int], test_ids: list[str]) -> int:
    """Attach every question to every test (junction rows).

    Raises:
        sqlite3.IntegrityError: If a pair already exists or an id is unknown
    """
    links = [(t, q) for t in test_ids for q in question_ids]
    with get_db() as conn:
        conn.executemany(
            "INSERT INTO test_questions (test_id, question_id) VALUES (?, ?)", links
        )
    logger.info("questions.linked_tests", count=len(links))
    return len(links)

