"""
Biometric registration records.

Only the storage paths of a template and its certificate are kept; matching
a live capture against them happens outside this service.
"""
import logging
from typing import List

from sqlalchemy.orm import Session, joinedload

from epitrack.core.exceptions import BusinessError, NotFoundError
from epitrack.models.biometria import MAX_BIOMETRIAS_POR_COLABORADOR, Biometria
from epitrack.models.collaborator import Collaborator
from epitrack.schemas.biometria import BiometriaCreate, BiometriaUpdate

logger = logging.getLogger(__name__)


def _collaborator(db: Session, id_colaborador: str, id_empresa: str, active_only: bool = False) -> Collaborator:
    query = db.query(Collaborator).filter(
        Collaborator.id_colaborador == id_colaborador, Collaborator.id_empresa == id_empresa
    )
    if active_only:
        query = query.filter(Collaborator.status.is_(True))
    colaborador = query.first()
    if not colaborador:
        raise NotFoundError("Colaborador não encontrado ou inativo" if active_only else "Colaborador não encontrado")
    return colaborador


def _count(db: Session, id_colaborador: str) -> int:
    return db.query(Biometria).filter(Biometria.id_colaborador == id_colaborador).count()


def _tenant_query(db: Session, id_empresa: str):
    return (
        db.query(Biometria)
        .join(Collaborator, Biometria.id_colaborador == Collaborator.id_colaborador)
        .options(joinedload(Biometria.colaborador))
        .filter(Collaborator.id_empresa == id_empresa)
    )


def get_biometria(db: Session, id_biometria: str, id_empresa: str) -> Biometria:
    biometria = _tenant_query(db, id_empresa).filter(Biometria.id_biometria == id_biometria).first()
    if not biometria:
        raise NotFoundError("Biometria não encontrada")
    return biometria


def create_biometria(db: Session, data: BiometriaCreate, id_empresa: str) -> Biometria:
    _collaborator(db, data.id_colaborador, id_empresa, active_only=True)
    if _count(db, data.id_colaborador) >= MAX_BIOMETRIAS_POR_COLABORADOR:
        raise BusinessError.bad_request(
            f"Colaborador já possui o máximo de {MAX_BIOMETRIAS_POR_COLABORADOR} biometrias cadastradas"
        )
    biometria = Biometria(**data.model_dump())
    db.add(biometria)
    db.commit()
    logger.info(f"Biometria {biometria.id_biometria} registered for {data.id_colaborador}")
    return get_biometria(db, biometria.id_biometria, id_empresa)


def update_biometria(db: Session, id_biometria: str, data: BiometriaUpdate, id_empresa: str) -> Biometria:
    biometria = get_biometria(db, id_biometria, id_empresa)
    for key, value in data.model_dump(exclude_unset=True).items():
        if key == "biometria_path" and value is None:
            continue
        setattr(biometria, key, value)
    db.commit()
    return get_biometria(db, id_biometria, id_empresa)


def delete_biometria(db: Session, id_biometria: str, id_empresa: str) -> None:
    biometria = get_biometria(db, id_biometria, id_empresa)
    db.delete(biometria)
    db.commit()


def list_by_colaborador(db: Session, id_colaborador: str, id_empresa: str) -> List[Biometria]:
    _collaborator(db, id_colaborador, id_empresa)
    return (
        _tenant_query(db, id_empresa)
        .filter(Biometria.id_colaborador == id_colaborador)
        .order_by(Biometria.created_at.asc())
        .all()
    )


def list_by_empresa(db: Session, id_empresa: str) -> List[Biometria]:
    return _tenant_query(db, id_empresa).order_by(Biometria.created_at.desc()).all()


def has_biometria(db: Session, id_colaborador: str, id_empresa: str) -> dict:
    colaborador = _collaborator(db, id_colaborador, id_empresa, active_only=True)
    total = _count(db, id_colaborador)
    return {
        "colaborador": {
            "idColaborador": colaborador.id_colaborador,
            "nomeColaborador": colaborador.nome_colaborador,
            "cpf": colaborador.cpf,
        },
        "hasBiometria": total > 0,
        "totalBiometrias": total,
        "maxBiometrias": MAX_BIOMETRIAS_POR_COLABORADOR,
        "canAddMore": total < MAX_BIOMETRIAS_POR_COLABORADOR,
    }
