"""Tenant (company) registry."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from epitrack.core.exceptions import BusinessError, NotFoundError
from epitrack.core.security import generate_api_key
from epitrack.models.company import Company
from epitrack.schemas.company import CompanyCreate, CompanyUpdate
from epitrack.schemas.common import pagination

logger = logging.getLogger(__name__)


def company_by_api_key(db: Session, api_key: Optional[str]) -> Company:
    """Active company owning `api_key`; 403 otherwise."""
    company = None
    if api_key:
        company = (
            db.query(Company)
            .filter(Company.api_key == api_key, Company.status_empresa.is_(True))
            .first()
        )
    if not company:
        raise BusinessError.forbidden("API Key inválida", reason="unknown or inactive api key")
    return company


def get_company(db: Session, id_empresa: str) -> Company:
    company = db.query(Company).filter(Company.id_empresa == id_empresa).first()
    if not company:
        raise NotFoundError("Empresa não encontrada")
    return company


def list_companies(db: Session, page: int = 1, limit: int = 10) -> Tuple[List[Company], dict]:
    query = db.query(Company)
    total = query.count()
    companies = (
        query.order_by(Company.created_at.desc(), Company.id_empresa)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return companies, pagination(total, page, limit)


def _ensure_cnpj_free(db: Session, cnpj: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Company.id_empresa).filter(Company.cnpj == cnpj)
    if exclude_id:
        query = query.filter(Company.id_empresa != exclude_id)
    if query.first():
        raise BusinessError.conflict("CNPJ já cadastrado")


def create_company(db: Session, data: CompanyCreate) -> Company:
    _ensure_cnpj_free(db, data.cnpj)
    company = Company(**data.model_dump(), api_key=generate_api_key(), status_empresa=True)
    db.add(company)
    db.commit()
    db.refresh(company)
    logger.info(f"Company {company.id_empresa} created ({company.nome_fantasia})")
    return company


def update_company(db: Session, id_empresa: str, data: CompanyUpdate) -> Company:
    company = get_company(db, id_empresa)
    fields = data.model_dump(exclude_unset=True)
    if fields.get("cnpj"):
        _ensure_cnpj_free(db, fields["cnpj"], exclude_id=id_empresa)
    for key, value in fields.items():
        if key in ("nome_fantasia", "cnpj") and value is None:
            continue
        setattr(company, key, value)
    db.commit()
    db.refresh(company)
    return company


def deactivate_company(db: Session, id_empresa: str) -> Company:
    company = get_company(db, id_empresa)
    company.status_empresa = False
    db.commit()
    db.refresh(company)
    logger.warning(f"Company {id_empresa} deactivated")
    return company


def regenerate_api_key(db: Session, id_empresa: str) -> Company:
    company = get_company(db, id_empresa)
    company.api_key = generate_api_key()
    db.commit()
    db.refresh(company)
    logger.warning(f"API key regenerated for company {id_empresa}")
    return company
