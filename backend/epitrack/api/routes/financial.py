from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, ensure_tenant, get_db, require_permission
from epitrack.core.dates import utcnow
from epitrack.schemas.common import envelope
from epitrack.services import financial_report_service

router = APIRouter()


@router.get("/{id_empresa}/annual-costs")
def annual_costs(
    id_empresa: str,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("financial:read")),
):
    ensure_tenant(ctx, id_empresa)
    data = financial_report_service.annual_costs(db, id_empresa, year)
    return envelope("Custos anuais por EPI recuperados com sucesso", data)


@router.get("/{id_empresa}/annual-summary")
def annual_summary(
    id_empresa: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("financial:read")),
):
    ensure_tenant(ctx, id_empresa)
    data = financial_report_service.annual_summary(db, id_empresa)
    return envelope("Resumo financeiro anual recuperado com sucesso", data)


@router.get("/{id_empresa}/monthly")
def monthly(
    id_empresa: str,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("financial:read")),
):
    ensure_tenant(ctx, id_empresa)
    data = financial_report_service.monthly(db, id_empresa, year or utcnow().year)
    return envelope("Dados financeiros mensais recuperados com sucesso", data)


@router.get("/{id_empresa}/top-expensive")
def top_expensive(
    id_empresa: str,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("financial:read")),
):
    ensure_tenant(ctx, id_empresa)
    data = financial_report_service.top_expensive(db, id_empresa, year or utcnow().year, limit)
    return envelope("EPIs com maior gasto recuperados com sucesso", data)
