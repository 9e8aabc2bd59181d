"""Tests for the academic hierarchy and enrollments."""

import sqlite3

import pytest

from eduportal.db import academic_repository, profiles_repository
from eduportal.db.database import NotFoundError


class TestCreateItem:
    def test_course_has_no_parent(self, db):
        course = academic_repository.create_item("course", "  Direito  ")
        assert course.description == "Direito"
        assert course.parent_id is None

    def test_child_requires_parent(self, db):
        with pytest.raises(ValueError):
            academic_repository.create_item("module", "Módulo solto")

    def test_blank_description_rejected(self, db):
        with pytest.raises(ValueError):
            academic_repository.create_item("course", "   ")

    def test_unknown_parent_violates_foreign_key(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            academic_repository.create_item("module", "Módulo", "missing-course")


class TestHierarchy:
    def test_list_by_parent(self, hierarchy):
        modules = academic_repository.list_items("module", hierarchy["course"].id)
        assert [m.id for m in modules] == [hierarchy["module"].id]

    def test_get_hierarchy_returns_all_levels(self, hierarchy):
        tree = academic_repository.get_hierarchy()
        assert len(tree.courses) == 1
        assert tree.subjects[0].parent_id == hierarchy["discipline"].id

    def test_delete_course_cascades(self, hierarchy):
        assert academic_repository.delete_item("course", hierarchy["course"].id) is True
        assert academic_repository.get_item("subject", hierarchy["subject"].id) is None

    def test_update_missing_raises(self, db):
        with pytest.raises(NotFoundError):
            academic_repository.update_item("course", "nope", "Novo nome")

    def test_rename(self, hierarchy):
        item = academic_repository.update_item("subject", hierarchy["subject"].id, "Garantias")
        assert item.description == "Garantias"
        assert item.parent_id == hierarchy["discipline"].id


class TestEnrollments:
    def test_set_enrollments_writes_only_the_difference(self, hierarchy, student):
        other = academic_repository.create_item("course", "Medicina")

        first = profiles_repository.set_enrollments(student.id, [hierarchy["course"].id])
        assert first.added == [hierarchy["course"].id]
        assert first.removed == []

        second = profiles_repository.set_enrollments(student.id, [other.id])
        assert second.added == [other.id]
        assert second.removed == [hierarchy["course"].id]
        assert profiles_repository.get_enrolled_course_ids(student.id) == [other.id]
