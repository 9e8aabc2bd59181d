"""Student study area and flashcard endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.core import study_area
from eduportal.core.study_area import FlashcardGenerationError
from eduportal.db import flashcards_repository
from eduportal.db.profiles_repository import ProfileRecord
from eduportal.llm.client import LLMClient
from eduportal.web.dependencies import get_current_user, get_llm_client, require_student
from eduportal.web.schemas import (
    CourseViewResponse,
    DeckResponse,
    FlashcardResponse,
    GenerateDeckRequest,
)

router = APIRouter(prefix="/api", tags=["study"])


def _get_deck_or_404(deck_id: str, user: ProfileRecord):
    deck = flashcards_repository.get_deck(deck_id)
    visible = deck is not None and (
        user.role == "admin" or deck.student_id in (None, user.id)
    )
    if not visible:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Baralho '{deck_id}' não encontrado",
        )
    return deck


@router.get("/study-area", response_model=list[CourseViewResponse])
async def get_study_area(user: ProfileRecord = Depends(require_student)) -> list[CourseViewResponse]:
    """Enrolled courses with modules, disciplines and subjects."""
    return [CourseViewResponse.model_validate(c) for c in study_area.build_study_area(user.id)]


@router.get("/flashcards/decks", response_model=list[DeckResponse])
async def list_decks(user: ProfileRecord = Depends(get_current_user)) -> list[DeckResponse]:
    student_id = None if user.role == "admin" else user.id
    return [DeckResponse.model_validate(d) for d in flashcards_repository.list_decks(student_id)]


@router.post(
    "/flashcards/generate", response_model=DeckResponse, status_code=status.HTTP_201_CREATED
)
def generate_deck(
    body: GenerateDeckRequest,
    user: ProfileRecord = Depends(require_student),
    client: LLMClient | None = Depends(get_llm_client),
) -> DeckResponse:
    """AI deck "Revisão de {assunto}" for one subject."""
    try:
        deck = study_area.generate_flashcard_deck(
            user.id, body.subject_id, count=body.count, client=client
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except FlashcardGenerationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return DeckResponse.model_validate(deck)


@router.get("/flashcards/decks/{deck_id}/cards", response_model=list[FlashcardResponse])
async def list_cards(
    deck_id: str, user: ProfileRecord = Depends(get_current_user)
) -> list[FlashcardResponse]:
    _get_deck_or_404(deck_id, user)
    return [FlashcardResponse.model_validate(c) for c in flashcards_repository.list_cards(deck_id)]


@router.delete("/flashcards/decks/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deck(deck_id: str, user: ProfileRecord = Depends(get_current_user)) -> None:
    deck = _get_deck_or_404(deck_id, user)
    if user.role != "admin" and deck.student_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Você só pode excluir seus próprios baralhos.",
        )
    flashcards_repository.delete_deck(deck_id)
