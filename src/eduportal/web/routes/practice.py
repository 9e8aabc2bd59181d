"""Subject practice endpoints (students)."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.core import practice
from eduportal.core.practice import AlreadyAnsweredError, HintLimitError, PracticeError
from eduportal.db.profiles_repository import ProfileRecord
from eduportal.llm.client import LLMClient
from eduportal.web.dependencies import get_llm_client, require_student
from eduportal.web.schemas import (
    AnswerRequest,
    AnswerResponse,
    HintRequest,
    HintResponse,
    PracticeSessionResponse,
)

router = APIRouter(prefix="/api/practice", tags=["practice"])


@router.get("/{subject_id}", response_model=PracticeSessionResponse)
async def start(
    subject_id: str, user: ProfileRecord = Depends(require_student)
) -> PracticeSessionResponse:
    """Unanswered questions of the subject, shuffled."""
    return PracticeSessionResponse.model_validate(practice.start_session(user.id, subject_id))


@router.post("/{subject_id}/answer", response_model=AnswerResponse)
async def answer(
    subject_id: str, body: AnswerRequest, user: ProfileRecord = Depends(require_student)
) -> AnswerResponse:
    try:
        outcome = practice.answer_question(user.id, subject_id, body.question_id, body.letter)
    except AlreadyAnsweredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except PracticeError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return AnswerResponse.model_validate(outcome)


@router.post("/{subject_id}/hint", response_model=HintResponse)
def hint(
    subject_id: str,
    body: HintRequest,
    user: ProfileRecord = Depends(require_student),
    client: LLMClient | None = Depends(get_llm_client),
) -> HintResponse:
    try:
        result = practice.request_hint(
            user.id, subject_id, body.question_id, body.previous_hints, client=client
        )
    except HintLimitError as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e)) from e
    except PracticeError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return HintResponse.model_validate(result)


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def restart(subject_id: str, user: ProfileRecord = Depends(require_student)) -> None:
    """Drop all progress on the subject."""
    practice.restart(user.id, subject_id)
