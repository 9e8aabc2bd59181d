"""Repository functions for study materials."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from eduportal.db.database import NotFoundError, get_db, new_id

logger = structlog.get_logger(__name__)

MATERIAL_KINDS = ("pdf", "ppt", "video")
KIND_LABELS = {"pdf": "PDF", "ppt": "Apresentação", "video": "Vídeo"}


@dataclass
class MaterialRecord:
    """Study material row."""

    id: str
    kind: str
    title: str
    url: str
    discipline_id: str
    subject_id: str
    created_at: str

    @property
    def kind_label(self) -> str:
        return KIND_LABELS.get(self.kind, self.kind)


def _row_to_record(row) -> MaterialRecord:
    return MaterialRecord(
        id=row["id"],
        kind=row["kind"],
        title=row["title"],
        url=row["url"],
        discipline_id=row["discipline_id"],
        subject_id=row["subject_id"],
        created_at=row["created_at"],
    )


def _validate(kind: str, title: str, url: str) -> None:
    if kind not in MATERIAL_KINDS:
        raise ValueError(f"Tipo de material inválido: {kind}")
    if not title.strip():
        raise ValueError("O título é obrigatório")
    if kind == "video" and not url.strip():
        raise ValueError("Materiais de vídeo exigem uma URL")


def insert_material(
    kind: str, title: str, url: str, discipline_id: str, subject_id: str
) -> MaterialRecord:
    """Create a study material.

    Raises:
        ValueError: If kind is unknown, title blank, or a video has no url
    """
    _validate(kind, title, url)
    material_id = new_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO study_materials (id, kind, title, url, discipline_id, subject_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (material_id, kind, title.strip(), url.strip(), discipline_id, subject_id),
        )
    logger.debug("materials.inserted", id=material_id, kind=kind)
    material = get_material(material_id)
    assert material is not None
    return material


def get_material(material_id: str) -> MaterialRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM study_materials WHERE id = ?", (material_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


def list_materials(
    discipline_id: str | None = None, subject_id: str | None = None
) -> list[MaterialRecord]:
    """Materials newest first, optionally filtered."""
    clauses, params = [], []
    if discipline_id:
        clauses.append("discipline_id = ?")
        params.append(discipline_id)
    if subject_id:
        clauses.append("subject_id = ?")
        params.append(subject_id)
    query = "SELECT * FROM study_materials"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC, rowid DESC"
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def list_materials_for_subjects(subject_ids: list[str]) -> list[MaterialRecord]:
    """Materials attached to any of the given subjects."""
    if not subject_ids:
        return []
    placeholders = ",".join("?" * len(subject_ids))
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM study_materials WHERE subject_id IN ({placeholders}) ORDER BY title",
            tuple(subject_ids),
        ).fetchall()
    return [_row_to_record(r) for r in rows]


def update_material(
    material_id: str, kind: str, title: str, url: str, discipline_id: str, subject_id: str
) -> MaterialRecord:
    """Overwrite a material.

    Raises:
        NotFoundError: If the material doesn't exist
    """
    _validate(kind, title, url)
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE study_materials
            SET kind = ?, title = ?, url = ?, discipline_id = ?, subject_id = ?
            WHERE id = ?
            """,
            (kind, title.strip(), url.strip(), discipline_id, subject_id, material_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Material", material_id)
    material = get_material(material_id)
    assert material is not None
    return material


def delete_material(material_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM study_materials WHERE id = ?", (material_id,))
    return cursor.rowcount > 0
