"""Role-based navigation menus."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NavItem:
    id: str
    label: str


ADMIN_MENU = (
    NavItem("dashboard", "Dashboard"),
    NavItem("upload-questions", "Upload de Questões"),
    NavItem("question-bank", "Banco de Questões"),
    NavItem("academic-management", "Gestão Acadêmica"),
    NavItem("study-material", "Material de Estudo"),
    NavItem("tests", "Agendar Testes"),
    NavItem("learning-paths", "Trilhas de IA"),
    NavItem("students", "Alunos (CRM)"),
)

STUDENT_MENU = (
    NavItem("dashboard", "Meu Painel"),
    NavItem("study-area", "Área de Estudo"),
    NavItem("my-tests", "Meus Testes"),
)


def menu_for(role: str) -> tuple[NavItem, ...]:
    """Menu shown to a role; anything but admin gets the student menu."""
    return ADMIN_MENU if role == "admin" else STUDENT_MENU


def can_access(role: str, page_id: str) -> bool:
    return any(item.id == page_id for item in menu_for(role))
