"""Route handlers for the web API."""

from eduportal.web.routes.health import router as health_router
from eduportal.web.routes.auth import router as auth_router
from eduportal.web.routes.academic import router as academic_router
from eduportal.web.routes.students import router as students_router
from eduportal.web.routes.questions import router as questions_router
from eduportal.web.routes.scheduled_tests import router as tests_router
from eduportal.web.routes.materials import router as materials_router
from eduportal.web.routes.learning_paths import router as learning_paths_router
from eduportal.web.routes.study import router as study_router
from eduportal.web.routes.practice import router as practice_router
from eduportal.web.routes.dashboard import router as dashboard_router
from eduportal.web.routes.chat import router as chat_router
from eduportal.web.routes.classbuild import router as classbuild_router

__all__ = [
    "health_router",
    "auth_router",
    "academic_router",
    "students_router",
    "questions_router",
    "tests_router",
    "materials_router",
    "learning_paths_router",
    "study_router",
    "practice_router",
    "dashboard_router",
    "chat_router",
    "classbuild_router",
]
