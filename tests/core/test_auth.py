"""Tests for accounts, sessions and role menus."""

import pytest

from eduportal.core import auth
from eduportal.core.auth import (
    AlreadyRegisteredError,
    InactiveAccountError,
    InvalidCredentialsError,
    WeakPasswordError,
)
from eduportal.core.navigation import ADMIN_MENU, STUDENT_MENU, can_access, menu_for
from eduportal.db import profiles_repository
from eduportal.db.database import NotFoundError


class TestPasswords:
    def test_hash_is_salted(self):
        first, salt1 = auth.hash_password("segredo1")
        second, salt2 = auth.hash_password("segredo1")
        assert salt1 != salt2
        assert first != second
        assert auth.verify_password("segredo1", first, salt1)
        assert not auth.verify_password("errada", first, salt1)


class TestSignUp:
    def test_sign_up_creates_student(self, db):
        profile = auth.sign_up("Novo@Example.com", "segredo1", "Novo Aluno")
        assert profile.role == "student"
        assert profile.email == "novo@example.com"

    def test_short_password(self, db):
        with pytest.raises(WeakPasswordError) as exc_info:
            auth.sign_up("a@example.com", "123")
        assert exc_info.value.min_length == 6

    def test_duplicate_email(self, db):
        auth.sign_up("a@example.com", "segredo1")
        with pytest.raises(AlreadyRegisteredError):
            auth.sign_up("a@example.com", "outrasenha")

    def test_roster_profile_cannot_be_claimed(self, student):
        with pytest.raises(AlreadyRegisteredError):
            auth.sign_up(student.email.upper(), "segredo1")
        assert profiles_repository.get_credentials(student.id) is None

    def test_admin_profile_cannot_be_claimed(self, db):
        admin = profiles_repository.insert_profile(
            name="Chefe", email="chefe@example.com", role="admin"
        )
        with pytest.raises(AlreadyRegisteredError):
            auth.sign_up("chefe@example.com", "segredo1")
        with pytest.raises(AlreadyRegisteredError):
            auth.register_user("Chefe", "chefe@example.com", "segredo1", role="admin")
        assert profiles_repository.get_credentials(admin.id) is None


class TestSetPassword:
    def test_admin_sets_first_password(self, student):
        auth.set_password(student.id, "segredo1")
        session = auth.sign_in(student.email, "segredo1")
        assert session.profile.id == student.id

    def test_weak_password(self, student):
        with pytest.raises(WeakPasswordError):
            auth.set_password(student.id, "1")

    def test_unknown_profile(self, db):
        with pytest.raises(NotFoundError):
            auth.set_password("nao-existe", "segredo1")


class TestSignIn:
    def test_sign_in_and_authenticate(self, db):
        auth.sign_up("a@example.com", "segredo1")
        session = auth.sign_in("a@example.com", "segredo1")

        assert auth.authenticate(session.token).email == "a@example.com"
        assert auth.sign_out(session.token) is True
        assert auth.authenticate(session.token) is None

    def test_wrong_password(self, db):
        auth.sign_up("a@example.com", "segredo1")
        with pytest.raises(InvalidCredentialsError) as exc_info:
            auth.sign_in("a@example.com", "errada")
        assert "E-mail ou senha inválidos" in str(exc_info.value)

    def test_unknown_email(self, db):
        with pytest.raises(InvalidCredentialsError):
            auth.sign_in("ninguem@example.com", "segredo1")

    def test_inactive_account(self, db):
        profile = auth.sign_up("a@example.com", "segredo1", "Ana")
        profiles_repository.update_profile(profile.id, "Ana", "a@example.com", "inactive")
        with pytest.raises(InactiveAccountError):
            auth.sign_in("a@example.com", "segredo1")

    def test_empty_token(self, db):
        assert auth.authenticate("") is None


class TestNavigation:
    def test_admin_menu(self):
        assert [i.id for i in menu_for("admin")] == [i.id for i in ADMIN_MENU]
        assert len(ADMIN_MENU) == 8

    def test_student_menu(self):
        assert menu_for("student") == STUDENT_MENU
        assert can_access("student", "my-tests")
        assert not can_access("student", "question-bank")
