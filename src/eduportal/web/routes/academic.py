"""Academic hierarchy endpoints: courses, modules, disciplines, subjects."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.db import academic_repository
from eduportal.web.dependencies import get_current_user, require_admin
from eduportal.web.schemas import (
    AcademicItemCreate,
    AcademicItemResponse,
    AcademicItemUpdate,
    HierarchyResponse,
)

router = APIRouter(prefix="/api/academic", tags=["academic"])

# URL segment -> hierarchy level
SEGMENTS = {
    "courses": "course",
    "modules": "module",
    "disciplines": "discipline",
    "subjects": "subject",
}


def _level(segment: str) -> str:
    level = SEGMENTS.get(segment)
    if level is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Nível acadêmico desconhecido: {segment}",
        )
    return level


@router.get(
    "/hierarchy", response_model=HierarchyResponse, dependencies=[Depends(get_current_user)]
)
async def get_hierarchy() -> HierarchyResponse:
    """All four levels at once."""
    return HierarchyResponse.model_validate(academic_repository.get_hierarchy())


@router.get(
    "/{segment}",
    response_model=list[AcademicItemResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_items(segment: str, parent_id: str | None = None) -> list[AcademicItemResponse]:
    """Items of a level ordered by description, optionally under one parent."""
    items = academic_repository.list_items(_level(segment), parent_id=parent_id)
    return [AcademicItemResponse.model_validate(i) for i in items]


@router.post(
    "/{segment}",
    response_model=AcademicItemResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_item(segment: str, body: AcademicItemCreate) -> AcademicItemResponse:
    try:
        item = academic_repository.create_item(_level(segment), body.description, body.parent_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return AcademicItemResponse.model_validate(item)


@router.put(
    "/{segment}/{item_id}",
    response_model=AcademicItemResponse,
    dependencies=[Depends(require_admin)],
)
async def update_item(segment: str, item_id: str, body: AcademicItemUpdate) -> AcademicItemResponse:
    try:
        item = academic_repository.update_item(_level(segment), item_id, body.description)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return AcademicItemResponse.model_validate(item)


@router.delete(
    "/{segment}/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_item(segment: str, item_id: str) -> None:
    """Delete an item and everything below it."""
    if not academic_repository.delete_item(_level(segment), item_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Item '{item_id}' não encontrado",
        )
