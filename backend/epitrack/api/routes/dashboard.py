from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, ensure_tenant, get_db, require_permission
from epitrack.schemas.common import dump_list, envelope
from epitrack.schemas.epi import EpiOut
from epitrack.schemas.process import ProcessOut
from epitrack.services import dashboard_service

router = APIRouter()


@router.get("/{id_empresa}/stats")
def stats(
    id_empresa: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("dashboard:read")),
):
    ensure_tenant(ctx, id_empresa)
    return envelope("Estatísticas recuperadas com sucesso", dashboard_service.general_stats(db, id_empresa))


@router.get("/{id_empresa}/low-stock")
def low_stock(
    id_empresa: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("dashboard:read")),
):
    ensure_tenant(ctx, id_empresa)
    epis = dashboard_service.low_stock(db, id_empresa)
    return envelope("EPIs com estoque baixo", dump_list(EpiOut, epis))


@router.get("/{id_empresa}/recent-deliveries")
def recent_deliveries(
    id_empresa: str,
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("dashboard:read")),
):
    ensure_tenant(ctx, id_empresa)
    processes = dashboard_service.recent_deliveries(db, id_empresa, limit)
    return envelope("Entregas recentes", dump_list(ProcessOut, processes))
