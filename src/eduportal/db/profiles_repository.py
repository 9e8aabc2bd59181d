"""Repository functions for profiles, credentials and enrollments.

Profiles hold both roles (admin and student). Credentials and auth
sessions live in separate tables keyed by profile id.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from eduportal.db.database import NotFoundError, get_db, new_id

logger = structlog.get_logger(__name__)

DEFAULT_AVATAR = "https://api.dicebear.com/7.x/initials/svg?seed={seed}"


@dataclass
class ProfileRecord:
    """Profile row."""

    id: str
    name: str
    email: str
    role: str
    avatar_url: str
    status: str
    created_at: str


@dataclass
class EnrollmentChange:
    """Result of a course assignment diff."""

    added: list[str]
    removed: list[str]


def _row_to_record(row) -> ProfileRecord:
    return ProfileRecord(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        avatar_url=row["avatar_url"],
        status=row["status"],
        created_at=row["created_at"],
    )


# =============================================================================
# PROFILES
# =============================================================================


def insert_profile(
    name: str,
    email: str,
    role: str = "student",
    status: str = "active",
) -> ProfileRecord:
    """Insert a profile.

    Raises:
        sqlite3.IntegrityError: If the email is already used
    """
    profile_id = new_id()
    avatar_url = DEFAULT_AVATAR.format(seed=name.replace(" ", "+"))
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO profiles (id, name, email, role, avatar_url, status)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (profile_id, name, email, role, avatar_url, status),
        )

    logger.debug("profiles.inserted", id=profile_id, role=role)
    profile = get_profile(profile_id)
    assert profile is not None
    return profile


def get_profile(user_id: str) -> ProfileRecord | None:
    """Profile lookup by id (the store's profile procedure)."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()
    return _row_to_record(row) if row else None


def get_profile_by_email(email: str) -> ProfileRecord | None:
    """Profile lookup by email (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE email = ?", (email.strip(),)
        ).fetchone()
    return _row_to_record(row) if row else None


def list_students(search: str = "") -> list[ProfileRecord]:
    """List student profiles ordered by name.

    Args:
        search: Case-insensitive substring matched against name or email
    """
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM profiles WHERE role = 'student' ORDER BY name COLLATE NOCASE"
        ).fetchall()

    students = [_row_to_record(r) for r in rows]
    term = search.strip().lower()
    if term:
        students = [
            s for s in students if term in s.name.lower() or term in s.email.lower()
        ]
    return students


def update_profile(user_id: str, name: str, email: str, status: str) -> ProfileRecord:
    """Update name, email and status.

    Raises:
        NotFoundError: If the profile doesn't exist
    """
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE profiles SET name = ?, email = ?, status = ? WHERE id = ?",
            (name, email, status, user_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Perfil", user_id)

    logger.debug("profiles.updated", id=user_id)
    profile = get_profile(user_id)
    assert profile is not None
    return profile


def delete_profile(user_id: str) -> bool:
    """Delete profile (credentials, sessions and enrollments cascade)."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM profiles WHERE id = ?", (user_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("profiles.deleted", id=user_id)
    return deleted


def count_profiles(role: str, status: str | None = None) -> int:
    """Count profiles of a role, optionally filtered by status."""
    query = "SELECT COUNT(*) FROM profiles WHERE role = ?"
    params: tuple = (role,)
    if status:
        query += " AND status = ?"
        params = (role, status)
    with get_db() as conn:
        return conn.execute(query, params).fetchone()[0]


# =============================================================================
# CREDENTIALS & SESSIONS
# =============================================================================


def set_credentials(user_id: str, password_hash: str, salt: str) -> None:
    """Insert or replace credentials for a profile."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO credentials (user_id, password_hash, salt) VALUES (?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                password_hash = excluded.password_hash,
                salt = excluded.salt
            """,
            (user_id, password_hash, salt),
        )


def get_credentials(user_id: str) -> tuple[str, str] | None:
    """Return (password_hash, salt) or None."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT password_hash, salt FROM credentials WHERE user_id = ?", (user_id,)
        ).fetchone()
    return (row["password_hash"], row["salt"]) if row else None


def insert_session(token: str, user_id: str, expires_at: str) -> None:
    """Store an auth session token."""
    with get_db() as conn:
        conn.execute(
            "INSERT INTO auth_sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
            (token, user_id, expires_at),
        )


def get_session_user(token: str, now: str) -> ProfileRecord | None:
    """Resolve a non-expired token to its profile."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT p.* FROM auth_sessions s
            JOIN profiles p ON p.id = s.user_id
            WHERE s.token = ? AND s.expires_at > ?
            """,
            (token, now),
        ).fetchone()
    return _row_to_record(row) if row else None


def delete_session(token: str) -> bool:
    """Delete an auth session (sign-out)."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM auth_sessions WHERE token = ?", (token,))
    return cursor.rowcount > 0


# =============================================================================
# ENROLLMENTS
# =============================================================================


def get_enrolled_course_ids(student_id: str) -> list[str]:
    """Course ids the student is enrolled in."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT course_id FROM student_courses WHERE student_id = ?", (student_id,)
        ).fetchall()
    return [r["course_id"] for r in rows]


def set_enrollments(student_id: str, course_ids: list[str]) -> EnrollmentChange:
    """Make the student's enrollments equal to course_ids.

    Only the difference is written: removed courses are deleted, new ones
    inserted.
    """
    current = set(get_enrolled_course_ids(student_id))
    wanted = set(course_ids)
    to_add = sorted(wanted - current)
    to_remove = sorted(current - wanted)

    with get_db() as conn:
        if to_remove:
            placeholders = ",".join("?" * len(to_remove))
            conn.execute(
                f"DELETE FROM student_courses WHERE student_id = ? AND course_id IN ({placeholders})",
                (student_id, *to_remove),
            )
        if to_add:
            conn.executemany(
                "INSERT INTO student_courses (student_id, course_id) VALUES (?, ?)",
                [(student_id, cid) for cid in to_add],
            )

    logger.info(
        "enrollments.updated",
        student_id=student_id,
        added=len(to_add),
        removed=len(to_remove),
    )
    return EnrollmentChange(added=to_add, removed=to_remove)
