"""Collaborator registry (per tenant)."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from epitrack.core.exceptions import BusinessError, NotFoundError
from epitrack.models.biometria import Biometria
from epitrack.models.collaborator import Collaborator
from epitrack.models.process import Process
from epitrack.schemas.collaborator import CollaboratorCreate, CollaboratorUpdate
from epitrack.schemas.common import pagination

logger = logging.getLogger(__name__)


def _with_counts(db: Session, collaborators: List[Collaborator]) -> List[Collaborator]:
    """Attach total_processos / total_biometrias for the response schema."""
    ids = [c.id_colaborador for c in collaborators]
    if not ids:
        return collaborators
    processos = dict(
        db.query(Process.id_colaborador, func.count(Process.id_processo))
        .filter(Process.id_colaborador.in_(ids))
        .group_by(Process.id_colaborador)
        .all()
    )
    biometrias = dict(
        db.query(Biometria.id_colaborador, func.count(Biometria.id_biometria))
        .filter(Biometria.id_colaborador.in_(ids))
        .group_by(Biometria.id_colaborador)
        .all()
    )
    for c in collaborators:
        c.total_processos = processos.get(c.id_colaborador, 0)
        c.total_biometrias = biometrias.get(c.id_colaborador, 0)
    return collaborators


def get_collaborator(db: Session, id_empresa: str, id_colaborador: str) -> Collaborator:
    colaborador = (
        db.query(Collaborator)
        .filter(Collaborator.id_colaborador == id_colaborador, Collaborator.id_empresa == id_empresa)
        .first()
    )
    if not colaborador:
        raise NotFoundError("Colaborador não encontrado")
    return _with_counts(db, [colaborador])[0]


def list_collaborators(db: Session, id_empresa: str, page: int = 1, limit: int = 10) -> Tuple[List[Collaborator], dict]:
    query = db.query(Collaborator).filter(Collaborator.id_empresa == id_empresa)
    total = query.count()
    rows = (
        query.order_by(Collaborator.created_at.desc(), Collaborator.nome_colaborador)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return _with_counts(db, rows), pagination(total, page, limit)


def _ensure_cpf_free(db: Session, cpf: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Collaborator.id_colaborador).filter(Collaborator.cpf == cpf)
    if exclude_id:
        query = query.filter(Collaborator.id_colaborador != exclude_id)
    if query.first():
        raise BusinessError.conflict("CPF já cadastrado")


def create_collaborator(db: Session, id_empresa: str, data: CollaboratorCreate) -> Collaborator:
    _ensure_cpf_free(db, data.cpf)
    colaborador = Collaborator(id_empresa=id_empresa, **data.model_dump())
    db.add(colaborador)
    db.commit()
    db.refresh(colaborador)
    logger.info(f"Collaborator {colaborador.id_colaborador} created for empresa {id_empresa}")
    return _with_counts(db, [colaborador])[0]


def update_collaborator(db: Session, id_empresa: str, id_colaborador: str, data: CollaboratorUpdate) -> Collaborator:
    colaborador = get_collaborator(db, id_empresa, id_colaborador)
    fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "cpf" in fields and fields["cpf"] != colaborador.cpf:
        _ensure_cpf_free(db, fields["cpf"], exclude_id=id_colaborador)
    for key, value in fields.items():
        setattr(colaborador, key, value)
    db.commit()
    db.refresh(colaborador)
    return _with_counts(db, [colaborador])[0]


def delete_collaborator(db: Session, id_empresa: str, id_colaborador: str) -> None:
    colaborador = get_collaborator(db, id_empresa, id_colaborador)
    if colaborador.total_processos:
        raise BusinessError.conflict("Colaborador possui processos vinculados e não pode ser removido")
    db.delete(colaborador)
    db.commit()
    logger.info(f"Collaborator {id_colaborador} deleted")
