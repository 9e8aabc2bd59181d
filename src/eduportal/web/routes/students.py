"""Student roster endpoints (admin only)."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.core.auth import WeakPasswordError, set_password
from eduportal.db import profiles_repository
from eduportal.web.dependencies import require_admin
from eduportal.web.schemas import (
    EnrollmentRequest,
    EnrollmentResponse,
    PasswordSet,
    ProfileResponse,
    StudentCreate,
    StudentListResponse,
    StudentUpdate,
)

router = APIRouter(
    prefix="/api/students", tags=["students"], dependencies=[Depends(require_admin)]
)


def _get_student_or_404(student_id: str):
    student = profiles_repository.get_profile(student_id)
    if student is None or student.role != "student":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Aluno '{student_id}' não encontrado",
        )
    return student


@router.get("", response_model=StudentListResponse)
async def list_students(search: str = "") -> StudentListResponse:
    """Roster ordered by name, filtered by name or email."""
    students = [
        ProfileResponse.model_validate(s) for s in profiles_repository.list_students(search)
    ]
    return StudentListResponse(students=students, count=len(students))


@router.get("/{student_id}", response_model=ProfileResponse)
async def get_student(student_id: str) -> ProfileResponse:
    return ProfileResponse.model_validate(_get_student_or_404(student_id))


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_student(body: StudentCreate) -> ProfileResponse:
    """Add a student to the roster; the first password is set by an admin."""
    if profiles_repository.get_profile_by_email(body.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Este e-mail já está cadastrado.",
        )
    student = profiles_repository.insert_profile(
        name=body.name.strip(), email=body.email, role="student", status=body.status
    )
    return ProfileResponse.model_validate(student)


@router.put("/{student_id}", response_model=ProfileResponse)
async def update_student(student_id: str, body: StudentUpdate) -> ProfileResponse:
    _get_student_or_404(student_id)
    student = profiles_repository.update_profile(
        student_id, name=body.name.strip(), email=body.email, status=body.status
    )
    return ProfileResponse.model_validate(student)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(student_id: str) -> None:
    _get_student_or_404(student_id)
    profiles_repository.delete_profile(student_id)


@router.put("/{student_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def set_student_password(student_id: str, body: PasswordSet) -> None:
    """Set the password a roster student signs in with."""
    _get_student_or_404(student_id)
    try:
        set_password(student_id, body.password)
    except WeakPasswordError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/{student_id}/courses", response_model=list[str])
async def get_courses(student_id: str) -> list[str]:
    _get_student_or_404(student_id)
    return profiles_repository.get_enrolled_course_ids(student_id)


@router.put("/{student_id}/courses", response_model=EnrollmentResponse)
async def assign_courses(student_id: str, body: EnrollmentRequest) -> EnrollmentResponse:
    """Replace the student's enrollments; only the difference is written."""
    _get_student_or_404(student_id)
    change = profiles_repository.set_enrollments(student_id, body.course_ids)
    return EnrollmentResponse(
        course_ids=profiles_repository.get_enrolled_course_ids(student_id),
        added=change.added,
        removed=change.removed,
    )
