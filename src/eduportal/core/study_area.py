"""Student study area and AI flashcard decks.

The study area is assembled layer by layer from the student's enrollments:
courses, then their modules, disciplines and subjects, and finally the
materials, decks, question counts and practice progress of each subject.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from eduportal.db import (
    academic_repository,
    flashcards_repository,
    materials_repository,
    practice_repository,
    profiles_repository,
    questions_repository,
)
from eduportal.db.flashcards_repository import DeckRecord
from eduportal.db.materials_repository import MaterialRecord
from eduportal.llm.client import LLMClient, LLMError
from eduportal.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

DEFAULT_CARD_COUNT = 10


class FlashcardGenerationError(Exception):
    pass


@dataclass
class SubjectView:
    id: str
    description: str
    materials: list[MaterialRecord] = field(default_factory=list)
    decks: list[DeckRecord] = field(default_factory=list)
    question_count: int = 0
    answered: int = 0
    correct: int = 0

    @property
    def completed(self) -> bool:
        return self.question_count > 0 and self.answered >= self.question_count


@dataclass
class DisciplineView:
    id: str
    description: str
    subjects: list[SubjectView] = field(default_factory=list)


@dataclass
class ModuleView:
    id: str
    description: str
    disciplines: list[DisciplineView] = field(default_factory=list)


@dataclass
class CourseView:
    id: str
    description: str
    modules: list[ModuleView] = field(default_factory=list)


def build_study_area(student_id: str) -> list[CourseView]:
    """Everything the student can study, nested by hierarchy level."""
    course_ids = profiles_repository.get_enrolled_course_ids(student_id)
    courses = [c for c in (academic_repository.get_item("course", cid) for cid in course_ids) if c]
    if not courses:
        return []
    courses.sort(key=lambda c: c.description.lower())

    modules = academic_repository.list_items_in("module", [c.id for c in courses])
    disciplines = academic_repository.list_items_in("discipline", [m.id for m in modules])
    subjects = academic_repository.list_items_in("subject", [d.id for d in disciplines])
    subject_ids = [s.id for s in subjects]

    materials = materials_repository.list_materials_for_subjects(subject_ids)
    decks = flashcards_repository.list_decks(student_id=student_id, subject_ids=subject_ids)
    counts = questions_repository.count_questions_by_subject(subject_ids)
    progress = {p.subject_id: p for p in practice_repository.list_progress(student_id)}

    subject_views: dict[str, list[SubjectView]] = {}
    for s in subjects:
        p = progress.get(s.id)
        subject_views.setdefault(s.parent_id, []).append(
            SubjectView(
                id=s.id,
                description=s.description,
                materials=[m for m in materials if m.subject_id == s.id],
                decks=[d for d in decks if d.subject_id == s.id],
                question_count=counts.get(s.id, 0),
                answered=len(p.answered_ids) if p else 0,
                correct=len(p.correct_ids) if p else 0,
            )
        )

    discipline_views: dict[str, list[DisciplineView]] = {}
    for d in disciplines:
        discipline_views.setdefault(d.parent_id, []).append(
            DisciplineView(id=d.id, description=d.description, subjects=subject_views.get(d.id, []))
        )

    module_views: dict[str, list[ModuleView]] = {}
    for m in modules:
        module_views.setdefault(m.parent_id, []).append(
            ModuleView(id=m.id, description=m.description, disciplines=discipline_views.get(m.id, []))
        )

    return [
        CourseView(id=c.id, description=c.description, modules=module_views.get(c.id, []))
        for c in courses
    ]


def _parse_cards(data: Any) -> list[tuple[str, str]]:
    if isinstance(data, dict):
        data = data.get("flashcards", [])
    if not isinstance(data, list):
        return []
    cards = []
    for item in data:
        if not isinstance(item, dict):
            continue
        front = str(item.get("front") or item.get("frente") or "").strip()
        back = str(item.get("back") or item.get("verso") or "").strip()
        if front and back:
            cards.append((front, back))
    return cards


def generate_flashcard_deck(
    student_id: str,
    subject_id: str,
    count: int = DEFAULT_CARD_COUNT,
    client: LLMClient | None = None,
) -> DeckRecord:
    """Create a "Revisão de {subject}" deck with AI-written cards.

    Raises:
        ValueError: Unknown subject
        FlashcardGenerationError: AI failure or no usable cards
    """
    subject = academic_repository.get_item("subject", subject_id)
    if subject is None:
        raise ValueError("Assunto não encontrado")

    if client is None:
        client = LLMClient()

    try:
        data = client.simple_json(
            system_prompt=get_prompt("study/flashcards", topic=subject.description, count=count),
            user_message=subject.description,
        )
    except LLMError as e:
        logger.error("flashcards.generation_failed", subject_id=subject_id, error=str(e))
        raise FlashcardGenerationError(f"Erro ao gerar flashcards: {e}") from e

    cards = _parse_cards(data)
    if not cards:
        raise FlashcardGenerationError("Erro ao gerar flashcards: a IA não retornou cartões.")

    deck = flashcards_repository.insert_deck(
        title=f"Revisão de {subject.description}", subject_id=subject_id, student_id=student_id
    )
    flashcards_repository.insert_cards([(deck.id, front, back) for front, back in cards])
    logger.info("flashcards.deck_generated", deck_id=deck.id, cards=len(cards))
    return flashcards_repository.get_deck(deck.id) or deck
