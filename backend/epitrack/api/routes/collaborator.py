"""Collaborators of the caller's company."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, get_db, require_permission
from epitrack.schemas.collaborator import CollaboratorCreate, CollaboratorOut, CollaboratorUpdate
from epitrack.schemas.common import dump, dump_list, envelope
from epitrack.services import collaborator_service

router = APIRouter()


@router.get("")
def list_collaborators(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("collaborator:read")),
):
    rows, meta = collaborator_service.list_collaborators(db, ctx.id_empresa, page, limit)
    return envelope("Colaboradores recuperados com sucesso", dump_list(CollaboratorOut, rows), meta)


@router.get("/{id_colaborador}")
def get_collaborator(
    id_colaborador: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("collaborator:read")),
):
    colaborador = collaborator_service.get_collaborator(db, ctx.id_empresa, id_colaborador)
    return envelope("Colaborador recuperado com sucesso", dump(CollaboratorOut, colaborador))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_collaborator(
    data: CollaboratorCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("collaborator:create")),
):
    colaborador = collaborator_service.create_collaborator(db, ctx.id_empresa, data)
    return envelope("Colaborador criado com sucesso", dump(CollaboratorOut, colaborador))


@router.put("/{id_colaborador}")
def update_collaborator(
    id_colaborador: str,
    data: CollaboratorUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("collaborator:update")),
):
    colaborador = collaborator_service.update_collaborator(db, ctx.id_empresa, id_colaborador, data)
    return envelope("Colaborador atualizado com sucesso", dump(CollaboratorOut, colaborador))


@router.delete("/{id_colaborador}")
def delete_collaborator(
    id_colaborador: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("collaborator:delete")),
):
    collaborator_service.delete_collaborator(db, ctx.id_empresa, id_colaborador)
    return envelope("Colaborador removido com sucesso")
