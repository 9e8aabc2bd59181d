"""Repository functions for the academic hierarchy.

Course -> Module -> Discipline -> Subject. Every level has an id and a
description; every level below Course points to its parent. Deleting a
parent cascades to its children (enforced by the schema).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import structlog

from eduportal.db.database import NotFoundError, get_db, new_id

logger = structlog.get_logger(__name__)

Level = Literal["course", "module", "discipline", "subject"]

# level -> (table, parent column)
LEVELS: dict[str, tuple[str, str | None]] = {
    "course": ("courses", None),
    "module": ("modules", "course_id"),
    "discipline": ("disciplines", "module_id"),
    "subject": ("subjects", "discipline_id"),
}


@dataclass
class AcademicItem:
    """One row of any hierarchy level."""

    id: str
    level: str
    description: str
    parent_id: str | None = None


@dataclass
class AcademicHierarchy:
    """Snapshot of all four levels, each ordered by description."""

    courses: list[AcademicItem] = field(default_factory=list)
    modules: list[AcademicItem] = field(default_factory=list)
    disciplines: list[AcademicItem] = field(default_factory=list)
    subjects: list[AcademicItem] = field(default_factory=list)

    def subjects_of(self, discipline_id: str) -> list[AcademicItem]:
        """Subjects belonging to a discipline (the cascading select)."""
        return [s for s in self.subjects if s.parent_id == discipline_id]


def _table(level: str) -> tuple[str, str | None]:
    if level not in LEVELS:
        raise ValueError(f"Nível acadêmico inválido: {level}")
    return LEVELS[level]


def _row_to_item(row, level: str) -> AcademicItem:
    _, parent_col = LEVELS[level]
    return AcademicItem(
        id=row["id"],
        level=level,
        description=row["description"],
        parent_id=row[parent_col] if parent_col else None,
    )


def create_item(level: str, description: str, parent_id: str | None = None) -> AcademicItem:
    """Create an item at the given level.

    Args:
        level: course, module, discipline or subject
        description: Display name
        parent_id: Parent row id (required below course)

    Returns:
        The created AcademicItem

    Raises:
        ValueError: If the description is blank or the parent is missing
        sqlite3.IntegrityError: If the parent id does not exist
    """
    table, parent_col = _table(level)
    description = description.strip()
    if not description:
        raise ValueError("A descrição não pode ficar vazia")
    if parent_col and not parent_id:
        raise ValueError(f"{level} exige um item pai")

    item_id = new_id()
    with get_db() as conn:
        if parent_col:
            conn.execute(
                f"INSERT INTO {table} (id, description, {parent_col}) VALUES (?, ?, ?)",
                (item_id, description, parent_id),
            )
        else:
            conn.execute(
                f"INSERT INTO {table} (id, description) VALUES (?, ?)",
                (item_id, description),
            )

    logger.debug("academic.created", level=level, id=item_id)
    return AcademicItem(id=item_id, level=level, description=description, parent_id=parent_id if parent_col else None)


def get_item(level: str, item_id: str) -> AcademicItem | None:
    """Get an item by id, or None."""
    table, _ = _table(level)
    with get_db() as conn:
        row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (item_id,)).fetchone()
    return _row_to_item(row, level) if row else None


def list_items(level: str, parent_id: str | None = None) -> list[AcademicItem]:
    """List items of a level ordered by description, optionally by parent."""
    table, parent_col = _table(level)
    query = f"SELECT * FROM {table}"
    params: tuple = ()
    if parent_id is not None and parent_col:
        query += f" WHERE {parent_col} = ?"
        params = (parent_id,)
    query += " ORDER BY description COLLATE NOCASE"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_item(r, level) for r in rows]


def list_items_in(level: str, parent_ids: list[str]) -> list[AcademicItem]:
    """List items whose parent is any of parent_ids."""
    table, parent_col = _table(level)
    if not parent_ids or not parent_col:
        return []
    placeholders = ",".join("?" * len(parent_ids))
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM {table} WHERE {parent_col} IN ({placeholders}) "
            "ORDER BY description COLLATE NOCASE",
            tuple(parent_ids),
        ).fetchall()
    return [_row_to_item(r, level) for r in rows]


def update_item(
    level: str, item_id: str, description: str, parent_id: str | None = None
) -> AcademicItem:
    """Rename an item and optionally move it under another parent.

    Raises:
        NotFoundError: If the item doesn't exist
    """
    table, parent_col = _table(level)
    description = description.strip()
    if not description:
        raise ValueError("A descrição não pode ficar vazia")

    with get_db() as conn:
        if parent_col and parent_id:
            cursor = conn.execute(
                f"UPDATE {table} SET description = ?, {parent_col} = ? WHERE id = ?",
                (description, parent_id, item_id),
            )
        else:
            cursor = conn.execute(
                f"UPDATE {table} SET description = ? WHERE id = ?",
                (description, item_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(level, item_id)

    logger.debug("academic.updated", level=level, id=item_id)
    item = get_item(level, item_id)
    assert item is not None
    return item


def delete_item(level: str, item_id: str) -> bool:
    """Delete an item (children cascade).

    Returns:
        True if deleted, False if not found
    """
    table, _ = _table(level)
    with get_db() as conn:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (item_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("academic.deleted", level=level, id=item_id)
    return deleted


def get_hierarchy() -> AcademicHierarchy:
    """Fetch all four levels at once."""
    return AcademicHierarchy(
        courses=list_items("course"),
        modules=list_items("module"),
        disciplines=list_items("discipline"),
        subjects=list_items("subject"),
    )
