"""Repository functions for flashcard decks and cards."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from eduportal.db.database import get_db, new_id

logger = structlog.get_logger(__name__)


@dataclass
class DeckRecord:
    """Flashcard deck row, with its subject description when joined."""

    id: str
    title: str
    subject_id: str | None
    student_id: str | None
    created_at: str
    subject_description: str = ""
    card_count: int = 0


@dataclass
class FlashcardRecord:
    id: int
    deck_id: str
    front: str
    back: str


_DECK_SELECT = """
    SELECT d.*, COALESCE(s.description, '') AS subject_description,
           (SELECT COUNT(*) FROM flashcards f WHERE f.deck_id = d.id) AS card_count
    FROM flashcard_decks d
    LEFT JOIN subjects s ON s.id = d.subject_id
"""


def _row_to_deck(row) -> DeckRecord:
    return DeckRecord(
        id=row["id"],
        title=row["title"],
        subject_id=row["subject_id"],
        student_id=row["student_id"],
        created_at=row["created_at"],
        subject_description=row["subject_description"],
        card_count=row["card_count"],
    )


def insert_deck(title: str, subject_id: str | None, student_id: str | None) -> DeckRecord:
    deck_id = new_id()
    with get_db() as conn:
        conn.execute(
            "INSERT INTO flashcard_decks (id, title, subject_id, student_id) VALUES (?, ?, ?, ?)",
            (deck_id, title, subject_id, student_id),
        )
    logger.debug("flashcards.deck_inserted", id=deck_id)
    deck = get_deck(deck_id)
    assert deck is not None
    return deck


def get_deck(deck_id: str) -> DeckRecord | None:
    with get_db() as conn:
        row = conn.execute(_DECK_SELECT + " WHERE d.id = ?", (deck_id,)).fetchone()
    return _row_to_deck(row) if row else None


def list_decks(
    student_id: str | None = None, subject_ids: list[str] | None = None
) -> list[DeckRecord]:
    """Decks newest first, filtered by owner and/or subjects."""
    clauses, params = [], []
    if student_id:
        clauses.append("(d.student_id = ? OR d.student_id IS NULL)")
        params.append(student_id)
    if subject_ids is not None:
        if not subject_ids:
            return []
        clauses.append(f"d.subject_id IN ({','.join('?' * len(subject_ids))})")
        params.extend(subject_ids)
    query = _DECK_SELECT
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY d.created_at DESC, d.rowid DESC"
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_deck(r) for r in rows]


def delete_deck(deck_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM flashcard_decks WHERE id = ?", (deck_id,))
    return cursor.rowcount > 0


def insert_cards(cards: list[tuple[str, str, str]]) -> int:
    """Insert (deck_id, front, back) rows in one transaction."""
    with get_db() as conn:
        conn.executemany(
            "INSERT INTO flashcards (deck_id, front, back) VALUES (?, ?, ?)", cards
        )
    logger.info("flashcards.cards_inserted", count=len(cards))
    return len(cards)


def list_cards(deck_id: str) -> list[FlashcardRecord]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM flashcards WHERE deck_id = ? ORDER BY id", (deck_id,)
        ).fetchall()
    return [
        FlashcardRecord(id=r["id"], deck_id=r["deck_id"], front=r["front"], back=r["back"])
        for r in rows
    ]
