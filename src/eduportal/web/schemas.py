"""Pydantic schemas for the Web API.

Request bodies are validated here; responses are built from repository
records with ``model_validate`` (``from_attributes``).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    timestamp: str


# =============================================================================
# AUTH
# =============================================================================


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., max_length=200)
    name: str = Field(default="", max_length=100)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., max_length=200)


class ProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    avatar_url: str
    status: str
    created_at: str

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    token: str
    expires_at: str
    profile: ProfileResponse

    model_config = {"from_attributes": True}


class NavItemResponse(BaseModel):
    id: str
    label: str

    model_config = {"from_attributes": True}


class NavigationResponse(BaseModel):
    role: str
    items: list[NavItemResponse]


# =============================================================================
# ACADEMIC
# =============================================================================


class AcademicItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    parent_id: str | None = None


class AcademicItemUpdate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)


class AcademicItemResponse(BaseModel):
    id: str
    level: str
    description: str
    parent_id: str | None = None

    model_config = {"from_attributes": True}


class HierarchyResponse(BaseModel):
    courses: list[AcademicItemResponse]
    modules: list[AcademicItemResponse]
    disciplines: list[AcademicItemResponse]
    subjects: list[AcademicItemResponse]

    model_config = {"from_attributes": True}


# =============================================================================
# STUDENTS
# =============================================================================


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200)
    status: Literal["active", "inactive"] = "active"

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("E-mail inválido")
        return value


class StudentUpdate(StudentCreate):
    pass


class PasswordSet(BaseModel):
    password: str = Field(..., max_length=200)


class StudentListResponse(BaseModel):
    students: list[ProfileResponse]
    count: int


class EnrollmentRequest(BaseModel):
    course_ids: list[str] = Field(default_factory=list)


class EnrollmentResponse(BaseModel):
    course_ids: list[str]
    added: list[str]
    removed: list[str]


# =============================================================================
# QUESTIONS
# =============================================================================


class ChoiceSchema(BaseModel):
    letter: str = Field(..., min_length=1, max_length=2)
    text: str

    model_config = {"from_attributes": True}


class QuestionSchema(BaseModel):
    id: int
    statement: str = Field(..., min_length=1)
    choices: list[ChoiceSchema] = Field(default_factory=list)
    correct: str = ""
    resolution: str = ""
    hint: str = ""
    discipline_id: str | None = None
    subject_id: str | None = None
    lote: str = ""

    model_config = {"from_attributes": True}


class QuestionListResponse(BaseModel):
    questions: list[QuestionSchema]
    count: int


class ImportResponse(BaseModel):
    questions: list[QuestionSchema]
    count: int
    pattern: str
    lote: str
    chunks: int = 0
    failed_chunks: int = 0
    warnings: list[str] = Field(default_factory=list)


class SaveQuestionsRequest(BaseModel):
    questions: list[QuestionSchema]
    discipline_id: str
    subject_id: str
    lote: str = Field(..., min_length=1)


class SaveQuestionsResponse(BaseModel):
    saved_count: int
    batches: int
    message: str


class QuestionIdsRequest(BaseModel):
    question_ids: list[int] = Field(..., min_length=1)


class LinkSubjectRequest(QuestionIdsRequest):
    discipline_id: str
    subject_id: str


class LinkTestsRequest(QuestionIdsRequest):
    test_ids: list[str] = Field(..., min_length=1)


class LinkDecksRequest(QuestionIdsRequest):
    deck_ids: list[str] = Field(..., min_length=1)


class CountResponse(BaseModel):
    count: int
    message: str = ""


class DistributionEntry(BaseModel):
    letter: str
    count: int


class MetricsResponse(BaseModel):
    total: int
    selected: int
    distribution: list[DistributionEntry]
    max_count: int


# =============================================================================
# TESTS
# =============================================================================


class ScheduledTestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    scheduled_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}")
    assigned_to: list[str] = Field(default_factory=list)


class ScheduledTestResponse(BaseModel):
    id: str
    title: str
    scheduled_date: str
    assigned_to: list[str]
    created_at: str

    model_config = {"from_attributes": True}


class AttemptAnswerSchema(BaseModel):
    question_id: int
    letter: str = Field(..., min_length=1, max_length=2)

    model_config = {"from_attributes": True}


class AttemptRequest(BaseModel):
    answers: list[AttemptAnswerSchema] = Field(default_factory=list)


class AttemptResponse(BaseModel):
    id: str
    test_id: str
    test_title: str
    score: int
    answers: list[AttemptAnswerSchema]
    created_at: str

    model_config = {"from_attributes": True}


class MyTestsResponse(BaseModel):
    todo: list[ScheduledTestResponse]
    completed: list[AttemptResponse]


class AnalysisResponse(BaseModel):
    attempt_id: str
    analysis: str


# =============================================================================
# MATERIALS / LEARNING PATHS
# =============================================================================


class MaterialCreate(BaseModel):
    kind: Literal["pdf", "ppt", "video"]
    title: str = Field(..., min_length=1, max_length=200)
    url: str = ""
    discipline_id: str
    subject_id: str


class MaterialResponse(BaseModel):
    id: str
    kind: str
    kind_label: str
    title: str
    url: str
    discipline_id: str
    subject_id: str
    created_at: str

    model_config = {"from_attributes": True}


class LearningPathRequest(BaseModel):
    request: str = Field(..., max_length=2000)
    student_id: str | None = None


class PathStepSchema(BaseModel):
    step: int
    title: str
    description: str

    model_config = {"from_attributes": True}


class LearningPathResponse(BaseModel):
    id: str
    title: str
    description: str
    duration: str
    target_audience: str
    steps: list[PathStepSchema]
    student_id: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# STUDY AREA / FLASHCARDS / PRACTICE
# =============================================================================


class DeckResponse(BaseModel):
    id: str
    title: str
    subject_id: str | None = None
    student_id: str | None = None
    subject_description: str = ""
    card_count: int = 0
    created_at: str

    model_config = {"from_attributes": True}


class FlashcardResponse(BaseModel):
    id: int
    deck_id: str
    front: str
    back: str

    model_config = {"from_attributes": True}


class GenerateDeckRequest(BaseModel):
    subject_id: str
    count: int = Field(default=10, ge=1, le=30)


class SubjectViewResponse(BaseModel):
    id: str
    description: str
    materials: list[MaterialResponse]
    decks: list[DeckResponse]
    question_count: int
    answered: int
    correct: int
    completed: bool

    model_config = {"from_attributes": True}


class DisciplineViewResponse(BaseModel):
    id: str
    description: str
    subjects: list[SubjectViewResponse]

    model_config = {"from_attributes": True}


class ModuleViewResponse(BaseModel):
    id: str
    description: str
    disciplines: list[DisciplineViewResponse]

    model_config = {"from_attributes": True}


class CourseViewResponse(BaseModel):
    id: str
    description: str
    modules: list[ModuleViewResponse]

    model_config = {"from_attributes": True}


class PracticeQuestion(BaseModel):
    """Question as served during practice (no answer key)."""

    id: int
    statement: str
    choices: list[ChoiceSchema]

    model_config = {"from_attributes": True}


class PracticeSessionResponse(BaseModel):
    subject_id: str
    questions: list[PracticeQuestion]
    total: int
    answered: int
    correct: int
    completed: bool

    model_config = {"from_attributes": True}


class AnswerRequest(BaseModel):
    question_id: int
    letter: str = Field(..., min_length=1, max_length=2)


class AnswerResponse(BaseModel):
    question_id: int
    correct: bool
    correct_letter: str
    xp_gained: int
    resolution: str

    model_config = {"from_attributes": True}


class HintRequest(BaseModel):
    question_id: int
    previous_hints: list[str] = Field(default_factory=list)


class HintResponse(BaseModel):
    hint: str
    generated: bool
    hints_used: int

    model_config = {"from_attributes": True}


# =============================================================================
# DASHBOARDS / CHAT / CLASSBUILD
# =============================================================================


class AdminDashboardResponse(BaseModel):
    students: int
    active_students: int
    courses: int
    questions: int
    tests: int
    learning_paths: int

    model_config = {"from_attributes": True}


class StudentDashboardResponse(BaseModel):
    xp: int
    level: int
    questions_answered: int
    correct_answers: int
    hints_used: int
    completed_tests: int
    average_score: int
    last_activity: str

    model_config = {"from_attributes": True}


class LeaderboardEntry(BaseModel):
    student_id: str
    name: str
    xp: int
    level: int


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str


class ClassbuildSettingsSchema(BaseModel):
    """Overrides for the configured Classbuild settings."""

    api_key: str | None = None
    escola_id: str | None = None
    banco_questao_id: str | None = None


class ClassbuildCheckResponse(BaseModel):
    success: bool
    message: str

    model_config = {"from_attributes": True}


class ClassbuildExportRequest(BaseModel):
    question_ids: list[int] = Field(..., min_length=1)
    discipline_id: str | None = None
    discipline_name: str | None = None
    subject_id: str | None = None
    subject_name: str | None = None
    settings: ClassbuildSettingsSchema = Field(default_factory=ClassbuildSettingsSchema)


class SendErrorSchema(BaseModel):
    question_id: int
    message: str

    model_config = {"from_attributes": True}


class SendReportResponse(BaseModel):
    total: int
    success_count: int
    error_count: int
    errors: list[SendErrorSchema]

    model_config = {"from_attributes": True}
