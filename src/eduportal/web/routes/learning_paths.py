"""Learning path endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.core.learning_path_generator import LearningPathError, generate_learning_path
from eduportal.db import learning_paths_repository
from eduportal.db.profiles_repository import ProfileRecord
from eduportal.llm.client import LLMClient
from eduportal.web.dependencies import get_current_user, get_llm_client, require_admin
from eduportal.web.schemas import LearningPathRequest, LearningPathResponse

router = APIRouter(prefix="/api/learning-paths", tags=["learning-paths"])


@router.get("", response_model=list[LearningPathResponse])
async def list_paths(user: ProfileRecord = Depends(get_current_user)) -> list[LearningPathResponse]:
    """Newest first; students see unassigned paths and their own."""
    student_id = None if user.role == "admin" else user.id
    paths = learning_paths_repository.list_learning_paths(student_id=student_id)
    return [LearningPathResponse.model_validate(p) for p in paths]


@router.post(
    "/generate",
    response_model=LearningPathResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def generate_path(
    body: LearningPathRequest, client: LLMClient | None = Depends(get_llm_client)
) -> LearningPathResponse:
    try:
        path = generate_learning_path(body.request, student_id=body.student_id, client=client)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except LearningPathError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return LearningPathResponse.model_validate(path)


@router.delete(
    "/{path_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)]
)
async def delete_path(path_id: str) -> None:
    if not learning_paths_repository.delete_learning_path(path_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trilha '{path_id}' não encontrada",
        )
