"""Read side of the audit log."""
from typing import List

from sqlalchemy.orm import Session

from epitrack.core.audit import EPI_LOG_TYPES
from epitrack.models.log import Log


def epi_logs(db: Session, id_empresa: str, id_epi: str, limit: int = 50) -> List[Log]:
    return (
        db.query(Log)
        .filter(Log.id_empresa == id_empresa, Log.id_epi == id_epi)
        .order_by(Log.timestamp.desc())
        .limit(limit)
        .all()
    )


def company_epi_logs(db: Session, id_empresa: str, limit: int = 100) -> List[Log]:
    return (
        db.query(Log)
        .filter(Log.id_empresa == id_empresa, Log.tipo.in_(EPI_LOG_TYPES))
        .order_by(Log.timestamp.desc())
        .limit(limit)
        .all()
    )
