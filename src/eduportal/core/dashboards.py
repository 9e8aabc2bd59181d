"""Dashboard figures and gamification levels."""

from __future__ import annotations

from dataclasses import dataclass

from eduportal.config.app_config import load_app_config
from eduportal.db import (
    academic_repository,
    learning_paths_repository,
    practice_repository,
    profiles_repository,
    questions_repository,
    tests_repository,
)


@dataclass
class AdminDashboard:
    students: int
    active_students: int
    courses: int
    questions: int
    tests: int
    learning_paths: int


@dataclass
class StudentDashboard:
    xp: int
    level: int
    questions_answered: int
    correct_answers: int
    hints_used: int
    completed_tests: int
    average_score: int
    last_activity: str


def level_for(xp: int, xp_per_level: int | None = None) -> int:
    """Level 1 starts at 0 XP; one level per xp_per_level points."""
    per_level = xp_per_level or load_app_config().gamification.xp_per_level
    return max(xp, 0) // per_level + 1


def admin_dashboard() -> AdminDashboard:
    return AdminDashboard(
        students=profiles_repository.count_profiles("student"),
        active_students=profiles_repository.count_profiles("student", status="active"),
        courses=len(academic_repository.list_items("course")),
        questions=questions_repository.count_questions(),
        tests=tests_repository.count_tests(),
        learning_paths=learning_paths_repository.count_learning_paths(),
    )


def student_dashboard(student_id: str) -> StudentDashboard:
    stats = practice_repository.get_stats(student_id)
    attempts = tests_repository.list_student_attempts(student_id)
    average = round(sum(a.score for a in attempts) / len(attempts)) if attempts else 0
    return StudentDashboard(
        xp=stats.xp,
        level=level_for(stats.xp),
        questions_answered=stats.questions_answered,
        correct_answers=stats.correct_answers,
        hints_used=stats.hints_used,
        completed_tests=len(attempts),
        average_score=average,
        last_activity=attempts[0].created_at if attempts else "N/A",
    )
