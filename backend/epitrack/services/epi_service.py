"""EPI inventory registry. EPIs are addressed by CA inside a tenant."""
import logging
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from epitrack.core.exceptions import BusinessError, NotFoundError
from epitrack.models.epi import Epi
from epitrack.models.process import ProcessEpi
from epitrack.schemas.common import pagination
from epitrack.schemas.epi import EpiCreate, EpiUpdate

logger = logging.getLogger(__name__)


def get_by_ca(db: Session, id_empresa: str, ca: str) -> Epi:
    epi = db.query(Epi).filter(Epi.id_empresa == id_empresa, Epi.ca == ca).first()
    if not epi:
        raise NotFoundError("EPI não encontrado")
    return epi


def get_by_id(db: Session, id_empresa: str, id_epi: str) -> Epi:
    epi = db.query(Epi).filter(Epi.id_empresa == id_empresa, Epi.id_epi == id_epi).first()
    if not epi:
        raise NotFoundError("EPI não encontrado")
    return epi


def list_epis(db: Session, id_empresa: str, page: int = 1, limit: int = 10) -> Tuple[List[Epi], dict]:
    query = db.query(Epi).filter(Epi.id_empresa == id_empresa)
    total = query.count()
    epis = (
        query.order_by(Epi.created_at.desc(), Epi.nome_epi)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return epis, pagination(total, page, limit)


def low_stock(db: Session, id_empresa: str) -> List[Epi]:
    return (
        db.query(Epi)
        .filter(
            Epi.id_empresa == id_empresa,
            Epi.status.is_(True),
            Epi.quantidade <= Epi.quantidade_minima,
        )
        .order_by(Epi.quantidade.asc(), Epi.nome_epi)
        .all()
    )


def _ensure_ca_free(db: Session, id_empresa: str, ca: str, exclude_id: str = None) -> None:
    query = db.query(Epi.id_epi).filter(Epi.id_empresa == id_empresa, Epi.ca == ca)
    if exclude_id:
        query = query.filter(Epi.id_epi != exclude_id)
    if query.first():
        raise BusinessError.conflict("CA já cadastrado")


def create_epi(db: Session, id_empresa: str, data: EpiCreate) -> Epi:
    _ensure_ca_free(db, id_empresa, data.ca)
    epi = Epi(id_empresa=id_empresa, status=True, **data.model_dump())
    db.add(epi)
    db.commit()
    db.refresh(epi)
    logger.info(f"EPI {epi.id_epi} (CA {epi.ca}) created for empresa {id_empresa}")
    return epi


def update_epi(db: Session, id_empresa: str, ca: str, data: EpiUpdate) -> Tuple[Epi, Dict[str, Any]]:
    """Apply supplied fields only. Returns the EPI and {field: {"old", "new"}} for what changed."""
    epi = get_by_ca(db, id_empresa, ca)
    fields = data.model_dump(exclude_unset=True)
    if fields.get("ca") and fields["ca"] != epi.ca:
        _ensure_ca_free(db, id_empresa, fields["ca"], exclude_id=epi.id_epi)

    changes: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None and key in ("ca", "nome_epi", "quantidade", "quantidade_minima", "status"):
            continue
        old = getattr(epi, key)
        if old != value:
            changes[key] = {"old": old, "new": value}
            setattr(epi, key, value)

    if changes:
        db.commit()
        db.refresh(epi)
    return epi, changes


def delete_epi(db: Session, id_empresa: str, ca: str) -> Dict[str, Any]:
    """Returns a snapshot of the removed EPI for the audit trail."""
    epi = get_by_ca(db, id_empresa, ca)
    in_use = db.query(ProcessEpi.id).filter(ProcessEpi.id_epi == epi.id_epi).first()
    if in_use:
        raise BusinessError.conflict("EPI vinculado a processos não pode ser excluído")
    snapshot = {"idEpi": epi.id_epi, "ca": epi.ca, "nomeEpi": epi.nome_epi, "quantidade": epi.quantidade}
    db.delete(epi)
    db.commit()
    logger.info(f"EPI {snapshot['idEpi']} (CA {ca}) deleted")
    return snapshot
