"""Read-only dashboard figures for one tenant."""
from datetime import timedelta
from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from epitrack.core.dates import utcnow
from epitrack.models.epi import Epi
from epitrack.models.process import Process, ProcessEpi
from epitrack.services import epi_service
from epitrack.services.company_service import get_company

RECENT_DAYS = 30


def _money(value) -> float:
    return float(Decimal(value or 0).quantize(Decimal("0.01")))


def general_stats(db: Session, id_empresa: str) -> dict:
    get_company(db, id_empresa)

    total_epis = db.query(func.count(Epi.id_epi)).filter(
        Epi.id_empresa == id_empresa, Epi.status.is_(True)
    ).scalar()

    desde = utcnow() - timedelta(days=RECENT_DAYS)
    entregas_recentes = db.query(func.count(Process.id_processo)).filter(
        Process.id_empresa == id_empresa,
        Process.status_entrega.is_(True),
        Process.data_entrega >= desde,
    ).scalar()

    total, media = db.query(func.sum(Epi.preco), func.avg(Epi.preco)).filter(
        Epi.id_empresa == id_empresa, Epi.status.is_(True), Epi.preco.isnot(None)
    ).one()

    return {
        "totalEpis": total_epis or 0,
        "entregasRecentes": entregas_recentes or 0,
        "valorTotalEpis": _money(total),
        "valorMedioPorEpi": _money(media),
    }


def low_stock(db: Session, id_empresa: str) -> List[Epi]:
    get_company(db, id_empresa)
    return epi_service.low_stock(db, id_empresa)


def recent_deliveries(db: Session, id_empresa: str, limit: int = 10) -> List[Process]:
    get_company(db, id_empresa)
    return (
        db.query(Process)
        .options(
            joinedload(Process.colaborador),
            selectinload(Process.process_epis).joinedload(ProcessEpi.epi),
        )
        .filter(Process.id_empresa == id_empresa, Process.status_entrega.is_(True))
        .order_by(Process.data_entrega.desc())
        .limit(limit)
        .all()
    )
