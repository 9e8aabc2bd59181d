"""SQLite database connection and schema management.

Provides connection management and schema initialization for eduportal.
The store owns uniqueness and referential integrity; repositories never
re-check what a constraint already guarantees.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/eduportal.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


class NotFoundError(Exception):
    """Raised when a row addressed by id does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' não encontrado")


def new_id() -> str:
    """Generate a row id for text-keyed tables."""
    return str(uuid.uuid4())


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/eduportal.db
    """
    global _db_path
    _db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Return the database path currently in use."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM courses").fetchall()
    """
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE COLLATE NOCASE,
            role TEXT NOT NULL DEFAULT 'student' CHECK(role IN ('admin', 'student')),
            avatar_url TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active', 'inactive')),
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS credentials (
            user_id TEXT PRIMARY KEY REFERENCES profiles(id) ON DELETE CASCADE,
            password_hash TEXT NOT NULL,
            salt TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS auth_sessions (
            token TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            expires_at TEXT NOT NULL
        );

        -- Hierarquia acadêmica: curso -> módulo -> disciplina -> assunto
        CREATE TABLE IF NOT EXISTS courses (
            id TEXT PRIMARY KEY,
            description TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS modules (
            id TEXT PRIMARY KEY,
            course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            description TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS disciplines (
            id TEXT PRIMARY KEY,
            module_id TEXT NOT NULL REFERENCES modules(id) ON DELETE CASCADE,
            description TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS subjects (
            id TEXT PRIMARY KEY,
            discipline_id TEXT NOT NULL REFERENCES disciplines(id) ON DELETE CASCADE,
            description TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS student_courses (
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            course_id TEXT NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
            PRIMARY KEY (student_id, course_id)
        );

        CREATE TABLE IF NOT EXISTS questions (
            id INTEGER PRIMARY KEY,
            statement TEXT NOT NULL,
            choices TEXT NOT NULL DEFAULT '[]',
            correct TEXT NOT NULL DEFAULT '',
            resolution TEXT NOT NULL DEFAULT '',
            hint TEXT NOT NULL DEFAULT '',
            discipline_id TEXT REFERENCES disciplines(id) ON DELETE SET NULL,
            subject_id TEXT REFERENCES subjects(id) ON DELETE SET NULL,
            lote TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS tests (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            scheduled_date TEXT NOT NULL,
            assigned_to TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS test_questions (
            test_id TEXT NOT NULL REFERENCES tests(id) ON DELETE CASCADE,
            question_id INTEGER NOT NULL REFERENCES questions(id) ON DELETE CASCADE,
            PRIMARY KEY (test_id, question_id)
        );

        CREATE TABLE IF NOT EXISTS test_attempts (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            test_id TEXT NOT NULL REFERENCES tests(id) ON DELETE CASCADE,
            score INTEGER NOT NULL CHECK(score BETWEEN 0 AND 100),
            answers TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS study_materials (
            id TEXT PRIMARY KEY,
            kind TEXT NOT NULL CHECK(kind IN ('pdf', 'ppt', 'video')),
            title TEXT NOT NULL,
            url TEXT NOT NULL DEFAULT '',
            discipline_id TEXT NOT NULL REFERENCES disciplines(id) ON DELETE CASCADE,
            subject_id TEXT NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS learning_paths (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            duration TEXT NOT NULL DEFAULT '',
            target_audience TEXT NOT NULL DEFAULT '',
            student_id TEXT REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS learning_path_steps (
            path_id TEXT NOT NULL REFERENCES learning_paths(id) ON DELETE CASCADE,
            step INTEGER NOT NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (path_id, step)
        );

        CREATE TABLE IF NOT EXISTS flashcard_decks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            subject_id TEXT REFERENCES subjects(id) ON DELETE CASCADE,
            student_id TEXT REFERENCES profiles(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS flashcards (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            deck_id TEXT NOT NULL REFERENCES flashcard_decks(id) ON DELETE CASCADE,
            front TEXT NOT NULL,
            back TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS practice_progress (
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            subject_id TEXT NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
            answered_ids TEXT NOT NULL DEFAULT '[]',
            correct_ids TEXT NOT NULL DEFAULT '[]',
            hinted_ids TEXT NOT NULL DEFAULT '[]',
            hint_counts TEXT NOT NULL DEFAULT '{}',
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            PRIMARY KEY (student_id, subject_id)
        );

        CREATE TABLE IF NOT EXISTS gamification_stats (
            student_id TEXT PRIMARY KEY REFERENCES profiles(id) ON DELETE CASCADE,
            xp INTEGER NOT NULL DEFAULT 0,
            questions_answered INTEGER NOT NULL DEFAULT 0,
            correct_answers INTEGER NOT NULL DEFAULT 0,
            hints_used INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- Índices
        CREATE INDEX IF NOT EXISTS idx_modules_course ON modules(course_id);
        CREATE INDEX IF NOT EXISTS idx_disciplines_module ON disciplines(module_id);
        CREATE INDEX IF NOT EXISTS idx_subjects_discipline ON subjects(discipline_id);
        CREATE INDEX IF NOT EXISTS idx_questions_subject ON questions(subject_id);
        CREATE INDEX IF NOT EXISTS idx_questions_lote ON questions(lote);
        CREATE INDEX IF NOT EXISTS idx_attempts_student ON test_attempts(student_id);
        """
    )
