"""Repository functions for practice progress and gamification counters."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

import structlog

from eduportal.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class PracticeProgress:
    """Per student+subject practice state."""

    student_id: str
    subject_id: str
    answered_ids: list[int] = field(default_factory=list)
    correct_ids: list[int] = field(default_factory=list)
    hinted_ids: list[int] = field(default_factory=list)
    hint_counts: dict[int, int] = field(default_factory=dict)
    updated_at: str = ""


@dataclass
class GamificationStats:
    student_id: str
    xp: int = 0
    questions_answered: int = 0
    correct_answers: int = 0
    hints_used: int = 0


# =============================================================================
# PRACTICE PROGRESS
# =============================================================================


def get_progress(student_id: str, subject_id: str) -> PracticeProgress | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM practice_progress WHERE student_id = ? AND subject_id = ?",
            (student_id, subject_id),
        ).fetchone()
    if not row:
        return None
    return PracticeProgress(
        student_id=row["student_id"],
        subject_id=row["subject_id"],
        answered_ids=json.loads(row["answered_ids"]),
        correct_ids=json.loads(row["correct_ids"]),
        hinted_ids=json.loads(row["hinted_ids"]),
        hint_counts={int(k): v for k, v in json.loads(row["hint_counts"]).items()},
        updated_at=row["updated_at"],
    )


def list_progress(student_id: str) -> list[PracticeProgress]:
    """All progress rows of a student."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT subject_id FROM practice_progress WHERE student_id = ?", (student_id,)
        ).fetchall()
    result = []
    for r in rows:
        progress = get_progress(student_id, r["subject_id"])
        if progress:
            result.append(progress)
    return result


def save_progress(progress: PracticeProgress) -> None:
    """Upsert a progress row."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO practice_progress
                (student_id, subject_id, answered_ids, correct_ids, hinted_ids, hint_counts,
                 updated_at)
            VALUES (?, ?, ?, ?, ?, ?, datetime('now'))
            ON CONFLICT(student_id, subject_id) DO UPDATE SET
                answered_ids = excluded.answered_ids,
                correct_ids = excluded.correct_ids,
                hinted_ids = excluded.hinted_ids,
                hint_counts = excluded.hint_counts,
                updated_at = excluded.updated_at
            """,
            (
                progress.student_id,
                progress.subject_id,
                json.dumps(progress.answered_ids),
                json.dumps(progress.correct_ids),
                json.dumps(progress.hinted_ids),
                json.dumps(progress.hint_counts),
            ),
        )


def delete_progress(student_id: str, subject_id: str) -> bool:
    """Drop a progress row so the subject starts over."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM practice_progress WHERE student_id = ? AND subject_id = ?",
            (student_id, subject_id),
        )
    return cursor.rowcount > 0


# =============================================================================
# GAMIFICATION
# =============================================================================


def increment_xp(user_id: str, amount: int) -> int:
    """Atomically add XP to a user and return the new total."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO gamification_stats (student_id, xp) VALUES (?, ?)
            ON CONFLICT(student_id) DO UPDATE SET
                xp = xp + excluded.xp,
                updated_at = datetime('now')
            """,
            (user_id, amount),
        )
        total = conn.execute(
            "SELECT xp FROM gamification_stats WHERE student_id = ?", (user_id,)
        ).fetchone()[0]
    logger.debug("gamification.xp_incremented", user_id=user_id, amount=amount, total=total)
    return total


def record_activity(
    user_id: str, answered: int = 0, correct: int = 0, hints: int = 0
) -> None:
    """Bump the answered/correct/hint counters."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO gamification_stats
                (student_id, questions_answered, correct_answers, hints_used)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(student_id) DO UPDATE SET
                questions_answered = questions_answered + excluded.questions_answered,
                correct_answers = correct_answers + excluded.correct_answers,
                hints_used = hints_used + excluded.hints_used,
                updated_at = datetime('now')
            """,
            (user_id, answered, correct, hints),
        )


def get_stats(user_id: str) -> GamificationStats:
    """Counters for a user; zeros when nothing was recorded yet."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM gamification_stats WHERE student_id = ?", (user_id,)
        ).fetchone()
    if not row:
        return GamificationStats(student_id=user_id)
    return GamificationStats(
        student_id=row["student_id"],
        xp=row["xp"],
        questions_answered=row["questions_answered"],
        correct_answers=row["correct_answers"],
        hints_used=row["hints_used"],
    )


def list_top_students(limit: int = 10) -> list[tuple[str, str, int]]:
    """(student_id, name, xp) ordered by xp descending."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT p.id, p.name, COALESCE(g.xp, 0) AS xp FROM profiles p
            LEFT JOIN gamification_stats g ON g.student_id = p.id
            WHERE p.role = 'student'
            ORDER BY xp DESC, p.name COLLATE NOCASE
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    return [(r["id"], r["name"], r["xp"]) for r in rows]
