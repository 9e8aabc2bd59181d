"""Tests for study materials, learning paths and flashcard decks."""

import pytest

from eduportal.db import (
    flashcards_repository,
    learning_paths_repository,
    materials_repository,
    profiles_repository,
)
from eduportal.db.database import NotFoundError
from eduportal.db.learning_paths_repository import PathStep


class TestMaterials:
    def test_insert_and_label(self, hierarchy):
        m = materials_repository.insert_material(
            "ppt", "Slides", "", hierarchy["discipline"].id, hierarchy["subject"].id
        )
        assert m.kind_label == "Apresentação"
        assert materials_repository.get_material(m.id).title == "Slides"

    def test_video_requires_url(self, hierarchy):
        with pytest.raises(ValueError):
            materials_repository.insert_material(
                "video", "Aula", " ", hierarchy["discipline"].id, hierarchy["subject"].id
            )

    def test_unknown_kind_rejected(self, hierarchy):
        with pytest.raises(ValueError):
            materials_repository.insert_material(
                "doc", "Texto", "", hierarchy["discipline"].id, hierarchy["subject"].id
            )

    def test_filter_by_subject(self, hierarchy):
        materials_repository.insert_material(
            "pdf", "Apostila", "", hierarchy["discipline"].id, hierarchy["subject"].id
        )
        assert len(materials_repository.list_materials(subject_id=hierarchy["subject"].id)) == 1
        assert materials_repository.list_materials_for_subjects([]) == []

    def test_update_missing_raises(self, hierarchy):
        with pytest.raises(NotFoundError):
            materials_repository.update_material(
                "nope", "pdf", "X", "", hierarchy["discipline"].id, hierarchy["subject"].id
            )


class TestLearningPaths:
    def test_steps_are_stored_in_order(self, db):
        path = learning_paths_repository.insert_learning_path(
            "SQL", "Do zero", "4 semanas", "Iniciantes",
            [PathStep(1, "SELECT", "Consultas"), PathStep(2, "JOIN", "Junções")],
        )
        stored = learning_paths_repository.get_learning_path(path.id)
        assert [s.title for s in stored.steps] == ["SELECT", "JOIN"]

    def test_student_sees_unassigned_and_own(self, student):
        other = profiles_repository.insert_profile(name="Bruno", email="bruno@example.com")
        learning_paths_repository.insert_learning_path("Geral", "", "", "", [])
        learning_paths_repository.insert_learning_path("Da Ana", "", "", "", [], student.id)
        learning_paths_repository.insert_learning_path("Do Bruno", "", "", "", [], other.id)

        titles = {p.title for p in learning_paths_repository.list_learning_paths(student.id)}
        assert titles == {"Geral", "Da Ana"}
        assert learning_paths_repository.count_learning_paths() == 3


class TestFlashcards:
    def test_deck_card_count(self, hierarchy, student):
        deck = flashcards_repository.insert_deck("Revisão", hierarchy["subject"].id, student.id)
        flashcards_repository.insert_cards([(deck.id, "Frente", "Verso")] * 2)

        stored = flashcards_repository.get_deck(deck.id)
        assert stored.card_count == 2
        assert stored.subject_description == "Direitos Fundamentais"
        assert [c.front for c in flashcards_repository.list_cards(deck.id)] == ["Frente", "Frente"]

    def test_list_decks_by_subject(self, hierarchy, student):
        flashcards_repository.insert_deck("Revisão", hierarchy["subject"].id, student.id)
        assert flashcards_repository.list_decks(subject_ids=[]) == []
        assert len(flashcards_repository.list_decks(student.id, [hierarchy["subject"].id])) == 1

    def test_delete_deck_removes_cards(self, hierarchy, student):
        deck = flashcards_repository.insert_deck("Revisão", hierarchy["subject"].id, student.id)
        flashcards_repository.insert_cards([(deck.id, "F", "V")])
        assert flashcards_repository.delete_deck(deck.id) is True
        assert flashcards_repository.list_cards(deck.id) == []
