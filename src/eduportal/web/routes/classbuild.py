"""Classbuild export endpoints (admin)."""

from dataclasses import replace

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.db import questions_repository
from eduportal.integrations.classbuild import (
    ClassbuildClient,
    ClassbuildError,
    ClassbuildSettings,
    RemoteItem,
)
from eduportal.web.dependencies import require_admin
from eduportal.web.schemas import (
    ClassbuildCheckResponse,
    ClassbuildExportRequest,
    ClassbuildSettingsSchema,
    SendReportResponse,
)

router = APIRouter(
    prefix="/api/classbuild", tags=["classbuild"], dependencies=[Depends(require_admin)]
)


def get_classbuild_client(overrides: ClassbuildSettingsSchema) -> ClassbuildClient:
    """Client with configured settings, overridden by non-empty request values."""
    settings = ClassbuildSettings.from_config()
    changes = {k: v for k, v in overrides.model_dump().items() if v}
    return ClassbuildClient(settings=replace(settings, **changes))


def _remote_item(
    remote_id: str | None,
    name: str | None,
    create,
) -> RemoteItem:
    if remote_id:
        return RemoteItem(id=remote_id, descricao=name or remote_id)
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Informe o ID existente ou o nome para criar.",
        )
    return create(name)


@router.post("/check", response_model=ClassbuildCheckResponse)
def check(settings: ClassbuildSettingsSchema) -> ClassbuildCheckResponse:
    client = get_classbuild_client(settings)
    return ClassbuildCheckResponse.model_validate(client.check_connection())


@router.post("/export", response_model=SendReportResponse)
def export(body: ClassbuildExportRequest) -> SendReportResponse:
    """Send stored questions, creating the remote discipline/subject when named only."""
    questions = [questions_repository.get_question(qid) for qid in body.question_ids]
    missing = [qid for qid, q in zip(body.question_ids, questions) if q is None]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Questões não encontradas: {', '.join(map(str, missing))}",
        )

    client = get_classbuild_client(body.settings)
    if not client.settings.api_key or not client.settings.escola_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Configure a chave da API e o ID da escola do Classbuild.",
        )

    try:
        discipline = _remote_item(
            body.discipline_id, body.discipline_name, client.create_discipline
        )
        subject = _remote_item(
            body.subject_id,
            body.subject_name,
            lambda name: client.create_subject(name, discipline.id),
        )
    except ClassbuildError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    report = client.send_questions(questions, discipline, subject)
    return SendReportResponse.model_validate(report)
