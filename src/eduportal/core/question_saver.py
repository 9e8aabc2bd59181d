"""Batch save of extracted questions into the bank."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, replace
from typing import Callable

import structlog

from eduportal.db.questions_repository import Question, upsert_questions

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 50


class BatchSaveError(Exception):
    """A batch failed; earlier batches stay saved."""

    def __init__(self, saved_count: int, message: str):
        self.saved_count = saved_count
        self.reason = message
        super().__init__(f"Erro ao salvar após {saved_count} questões: {message}")


@dataclass
class SaveResult:
    saved_count: int
    batches: int

    @property
    def message(self) -> str:
        return f"{self.saved_count} questões salvas com sucesso!"


def save_questions(
    questions: list[Question],
    discipline_id: str,
    subject_id: str,
    lote: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: Callable[[int, int, str], None] | None = None,
) -> SaveResult:
    """Attach destination and batch name, then upsert in fixed-size batches.

    Each batch is its own transaction. The first failing batch aborts the
    run; batches already written are not rolled back.

    Args:
        questions: Selected questions
        discipline_id: Destination discipline
        subject_id: Destination subject
        lote: Batch name recorded on every question
        batch_size: Questions per transaction
        on_progress: Called with (processed, total, status) before each batch

    Returns:
        SaveResult with the number of questions written

    Raises:
        BatchSaveError: Nothing selected, or a batch failed
    """
    if not questions:
        raise BatchSaveError(0, "Nenhuma questão selecionada para salvar.")

    to_save = [
        replace(q, discipline_id=discipline_id, subject_id=subject_id, lote=lote)
        for q in questions
    ]
    total = len(to_save)
    saved = 0
    batches = 0

    for start in range(0, total, batch_size):
        batch = to_save[start : start + batch_size]
        if on_progress:
            on_progress(start + len(batch), total, f"Salvando {start + len(batch)} de {total}...")
        try:
            upsert_questions(batch)
        except sqlite3.Error as e:
            logger.error("questions.batch_failed", saved=saved, batch_start=start, error=str(e))
            raise BatchSaveError(saved, str(e)) from e
        saved += len(batch)
        batches += 1

    logger.info("questions.batch_saved", saved=saved, batches=batches, lote=lote)
    return SaveResult(saved_count=saved, batches=batches)
