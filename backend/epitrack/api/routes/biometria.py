"""Biometric registrations (at most two per collaborator)."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, get_db, require_permission
from epitrack.schemas.biometria import BiometriaCreate, BiometriaOut, BiometriaUpdate
from epitrack.schemas.common import dump, dump_list, envelope
from epitrack.services import biometria_service

router = APIRouter()


@router.get("")
def list_company_biometrias(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:read")),
):
    rows = biometria_service.list_by_empresa(db, ctx.id_empresa)
    return envelope("Biometrias da empresa encontradas", dump_list(BiometriaOut, rows))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_biometria(
    data: BiometriaCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:create")),
):
    biometria = biometria_service.create_biometria(db, data, ctx.id_empresa)
    return envelope("Biometria criada com sucesso", dump(BiometriaOut, biometria))


@router.get("/colaborador/{id_colaborador}")
def list_collaborator_biometrias(
    id_colaborador: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:read")),
):
    rows = biometria_service.list_by_colaborador(db, id_colaborador, ctx.id_empresa)
    return envelope("Biometrias encontradas", dump_list(BiometriaOut, rows))


@router.get("/colaborador/{id_colaborador}/status")
def has_biometria(
    id_colaborador: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:read")),
):
    return envelope(
        "Verificação de biometria realizada",
        biometria_service.has_biometria(db, id_colaborador, ctx.id_empresa),
    )


@router.get("/{id_biometria}")
def get_biometria(
    id_biometria: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:read")),
):
    biometria = biometria_service.get_biometria(db, id_biometria, ctx.id_empresa)
    return envelope("Biometria encontrada", dump(BiometriaOut, biometria))


@router.put("/{id_biometria}")
def update_biometria(
    id_biometria: str,
    data: BiometriaUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:update")),
):
    biometria = biometria_service.update_biometria(db, id_biometria, data, ctx.id_empresa)
    return envelope("Biometria atualizada com sucesso", dump(BiometriaOut, biometria))


@router.delete("/{id_biometria}")
def delete_biometria(
    id_biometria: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("biometria:delete")),
):
    biometria_service.delete_biometria(db, id_biometria, ctx.id_empresa)
    return envelope("Biometria deletada com sucesso")
