"""Study material endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from eduportal.db import materials_repository
from eduportal.web.dependencies import get_current_user, require_admin
from eduportal.web.schemas import MaterialCreate, MaterialResponse

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get(
    "", response_model=list[MaterialResponse], dependencies=[Depends(get_current_user)]
)
async def list_materials(
    discipline_id: str | None = None, subject_id: str | None = None
) -> list[MaterialResponse]:
    materials = materials_repository.list_materials(discipline_id, subject_id)
    return [MaterialResponse.model_validate(m) for m in materials]


@router.post(
    "",
    response_model=MaterialResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_material(body: MaterialCreate) -> MaterialResponse:
    try:
        material = materials_repository.insert_material(
            body.kind, body.title, body.url, body.discipline_id, body.subject_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return MaterialResponse.model_validate(material)


@router.put(
    "/{material_id}", response_model=MaterialResponse, dependencies=[Depends(require_admin)]
)
async def update_material(material_id: str, body: MaterialCreate) -> MaterialResponse:
    try:
        material = materials_repository.update_material(
            material_id, body.kind, body.title, body.url, body.discipline_id, body.subject_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return MaterialResponse.model_validate(material)


@router.delete(
    "/{material_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_material(material_id: str) -> None:
    if not materials_repository.delete_material(material_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Material '{material_id}' não encontrado",
        )
