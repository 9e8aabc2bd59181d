"""Question-bank endpoints: list, edit, bulk actions, import and save."""

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from eduportal.core import question_bank
from eduportal.core.document_extractor import ExtractionError, extract_document_text
from eduportal.core.question_extractor import QuestionExtractionError, extract_questions
from eduportal.core.question_saver import BatchSaveError, save_questions
from eduportal.db import questions_repository
from eduportal.db.questions_repository import Question, QuestionFilter
from eduportal.llm.client import LLMClient
from eduportal.web.dependencies import get_llm_client, require_admin
from eduportal.web.schemas import (
    CountResponse,
    DistributionEntry,
    ImportResponse,
    LinkDecksRequest,
    LinkSubjectRequest,
    LinkTestsRequest,
    MetricsResponse,
    QuestionIdsRequest,
    QuestionListResponse,
    QuestionSchema,
    SaveQuestionsRequest,
    SaveQuestionsResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/questions", tags=["questions"], dependencies=[Depends(require_admin)]
)


@router.get("", response_model=QuestionListResponse)
async def list_questions(
    search: str = "",
    discipline_id: str | None = None,
    subject_id: str | None = None,
    lote: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> QuestionListResponse:
    """Questions newest first, filtered."""
    filters = QuestionFilter(
        search=search,
        discipline_id=discipline_id,
        subject_id=subject_id,
        lote=lote,
        limit=max(1, min(limit, 500)),
        offset=max(0, offset),
    )
    questions = [QuestionSchema.model_validate(q) for q in questions_repository.list_questions(filters)]
    return QuestionListResponse(questions=questions, count=len(questions))


@router.get("/lotes", response_model=list[str])
async def list_lotes() -> list[str]:
    return questions_repository.list_lotes()


@router.get("/metrics", response_model=MetricsResponse)
async def metrics(
    discipline_id: str | None = None,
    subject_id: str | None = None,
    lote: str | None = None,
    selected: str = "",
) -> MetricsResponse:
    """Totals and correct-letter distribution of the filtered bank.

    `selected` is a comma-separated list of question ids.
    """
    questions = questions_repository.list_questions(
        QuestionFilter(
            discipline_id=discipline_id, subject_id=subject_id, lote=lote, limit=100_000
        )
    )
    selected_ids = {int(s) for s in selected.split(",") if s.strip().isdigit()}
    result = question_bank.compute_metrics(questions, selected_ids)
    return MetricsResponse(
        total=result.total,
        selected=result.selected,
        distribution=[DistributionEntry(letter=letter, count=n) for letter, n in result.distribution.counts],
        max_count=result.distribution.max_count,
    )


@router.post("/import", response_model=ImportResponse)
def import_questions(
    file: UploadFile = File(...),
    lote: str = Form(...),
    pattern: str = Form("sequential"),
    client: LLMClient | None = Depends(get_llm_client),
) -> ImportResponse:
    """Extract questions from an uploaded exam. Nothing is saved here."""
    if not lote.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Por favor, selecione um arquivo e forneça um nome para o lote.",
        )
    try:
        document = extract_document_text(file.file.read(), file.filename or "upload")
        report = extract_questions(document.text, pattern=pattern, client=client)
    except (ExtractionError, QuestionExtractionError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return ImportResponse(
        questions=[QuestionSchema.model_validate(q) for q in report.questions],
        count=len(report.questions),
        pattern=report.pattern,
        lote=lote.strip(),
        chunks=report.chunks,
        failed_chunks=report.failed_chunks,
        warnings=report.warnings,
    )


@router.post("/save", response_model=SaveQuestionsResponse)
async def save(body: SaveQuestionsRequest) -> SaveQuestionsResponse:
    """Upsert reviewed questions in batches under a destination and lote."""
    questions = [Question.from_dict(q.model_dump()) for q in body.questions]
    try:
        result = save_questions(questions, body.discipline_id, body.subject_id, body.lote.strip())
    except BatchSaveError as e:
        code = status.HTTP_409_CONFLICT if questions else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=str(e)) from e
    return SaveQuestionsResponse(
        saved_count=result.saved_count, batches=result.batches, message=result.message
    )


@router.post("/delete", response_model=CountResponse)
async def delete_many(body: QuestionIdsRequest) -> CountResponse:
    deleted = questions_repository.delete_questions(body.question_ids)
    return CountResponse(count=deleted, message=f"{deleted} questões excluídas.")


@router.post("/link/subject", response_model=CountResponse)
async def link_subject(body: LinkSubjectRequest) -> CountResponse:
    updated = questions_repository.link_to_subject(
        body.question_ids, body.discipline_id, body.subject_id
    )
    return CountResponse(count=updated, message="Vínculo acadêmico atualizado com sucesso!")


@router.post("/link/tests", response_model=CountResponse)
async def link_tests(body: LinkTestsRequest) -> CountResponse:
    created = questions_repository.link_to_tests(body.question_ids, body.test_ids)
    return CountResponse(count=created, message="Questões adicionadas aos testes com sucesso!")


@router.post("/link/decks", response_model=CountResponse)
async def link_decks(body: LinkDecksRequest) -> CountResponse:
    try:
        created = question_bank.link_to_decks(body.question_ids, body.deck_ids)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return CountResponse(count=created, message="Flashcards gerados com sucesso!")


@router.get("/{question_id}", response_model=QuestionSchema)
async def get_question(question_id: int) -> QuestionSchema:
    question = questions_repository.get_question(question_id)
    if question is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Questão '{question_id}' não encontrada",
        )
    return QuestionSchema.model_validate(question)


@router.put("/{question_id}", response_model=QuestionSchema)
async def update_question(question_id: int, body: QuestionSchema) -> QuestionSchema:
    data = body.model_dump()
    data["id"] = question_id
    stored = questions_repository.update_question(Question.from_dict(data))
    return QuestionSchema.model_validate(stored)


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: int) -> None:
    if questions_repository.delete_questions([question_id]) == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Questão '{question_id}' não encontrada",
        )
