from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, ensure_tenant, get_db, require_permission
from epitrack.schemas.common import dump_list, envelope
from epitrack.schemas.log import LogOut
from epitrack.services import log_service

router = APIRouter()


@router.get("/epi/company/{id_empresa}")
def company_epi_logs(
    id_empresa: str,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("logs:read")),
):
    ensure_tenant(ctx, id_empresa)
    logs = log_service.company_epi_logs(db, id_empresa, limit)
    return envelope("Logs de EPIs da empresa recuperados com sucesso", dump_list(LogOut, logs))


@router.get("/epi/{id_epi}")
def epi_logs(
    id_epi: str,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("logs:read")),
):
    logs = log_service.epi_logs(db, ctx.id_empresa, id_epi, limit)
    return envelope("Logs do EPI recuperados com sucesso", dump_list(LogOut, logs))
