"""Question-bank operations beyond plain CRUD: linking and metrics."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

import structlog

from eduportal.db import flashcards_repository, questions_repository
from eduportal.db.questions_repository import Question

logger = structlog.get_logger(__name__)


@dataclass
class AnswerDistribution:
    """Correct-letter counts, sorted by letter."""

    counts: list[tuple[str, int]] = field(default_factory=list)
    max_count: int = 0


@dataclass
class BankMetrics:
    total: int
    selected: int
    distribution: AnswerDistribution


def flashcard_back(question: Question) -> str:
    """Back side of a card made from a question."""
    return f"Gabarito: {question.correct}\n\nResolução: {question.resolution or 'Não fornecida.'}"


def answer_distribution(questions: list[Question]) -> AnswerDistribution:
    """Count questions per correct letter; unknown answers are skipped."""
    counter = Counter(q.correct for q in questions if q.correct)
    counts = sorted(counter.items())
    return AnswerDistribution(counts=counts, max_count=max(counter.values(), default=0))


def compute_metrics(questions: list[Question], selected_ids: set[int] | None = None) -> BankMetrics:
    selected_ids = selected_ids or set()
    return BankMetrics(
        total=len(questions),
        selected=sum(1 for q in questions if q.id in selected_ids),
        distribution=answer_distribution(questions),
    )


def link_to_decks(question_ids: list[int], deck_ids: list[str]) -> int:
    """Create one flashcard per question in every deck.

    Returns:
        Number of cards created

    Raises:
        ValueError: If no deck or no known question was given
    """
    if not deck_ids:
        raise ValueError("Selecione ao menos um baralho de flashcards.")
    questions = [q for q in map(questions_repository.get_question, question_ids) if q]
    if not questions:
        raise ValueError("Nenhuma questão selecionada.")

    cards = [
        (deck_id, q.statement, flashcard_back(q)) for deck_id in deck_ids for q in questions
    ]
    created = flashcards_repository.insert_cards(cards)
    logger.info("question_bank.linked_decks", decks=len(deck_ids), cards=created)
    return created
