"""Companies (tenants). Cross-tenant operations are admin only."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, ensure_tenant, get_db, require_admin, require_permission
from epitrack.schemas.common import dump, dump_list, envelope
from epitrack.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate, CompanyWithKey
from epitrack.services import company_service

router = APIRouter()


@router.get("/me")
def my_company(ctx: AuthContext = Depends(require_permission("company:read"))):
    return envelope("Empresa encontrada", dump(CompanyOut, ctx.empresa))


@router.get("")
def list_companies(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    companies, meta = company_service.list_companies(db, page, limit)
    return envelope("Empresas encontradas", dump_list(CompanyOut, companies), meta)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_company(
    data: CompanyCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    """The generated API key is only returned here and on regeneration."""
    company = company_service.create_company(db, data)
    return envelope("Empresa criada com sucesso", dump(CompanyWithKey, company))


@router.put("/{id_empresa}")
def update_company(
    id_empresa: str,
    data: CompanyUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("company:update")),
):
    ensure_tenant(ctx, id_empresa)
    company = company_service.update_company(db, id_empresa, data)
    return envelope("Empresa atualizada com sucesso", dump(CompanyOut, company))


@router.delete("/{id_empresa}")
def deactivate_company(
    id_empresa: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    company_service.deactivate_company(db, id_empresa)
    return envelope("Empresa desativada com sucesso")


@router.post("/{id_empresa}/api-key")
def regenerate_api_key(
    id_empresa: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    ensure_tenant(ctx, id_empresa)
    company = company_service.regenerate_api_key(db, id_empresa)
    return envelope("API Key regenerada com sucesso", dump(CompanyWithKey, company))
