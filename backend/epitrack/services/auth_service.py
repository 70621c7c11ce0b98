"""Login and token refresh against a tenant API key."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from epitrack.core.dates import utcnow
from epitrack.core.exceptions import BusinessError
from epitrack.core.security import create_access_token, decode_access_token, verify_password
from epitrack.models.company import Company
from epitrack.models.user import AuthCompany, User
from epitrack.services.company_service import company_by_api_key

logger = logging.getLogger(__name__)


def _link(db: Session, user: User, company: Company) -> AuthCompany:
    link = (
        db.query(AuthCompany)
        .filter(AuthCompany.id_user == user.id_user, AuthCompany.id_empresa == company.id_empresa)
        .first()
    )
    if not link:
        raise BusinessError.unauthorized("Usuário não autorizado para esta empresa")
    return link


def issue_token(user: User, company: Company, link: AuthCompany) -> str:
    return create_access_token(
        user.id_user,
        claims={
            "companyId": company.id_empresa,
            "email": user.email,
            "role": link.cargo,
            "permissions": link.role.permissao,
        },
    )


def user_payload(user: User, link: AuthCompany) -> dict:
    return {
        "id": user.id_user,
        "name": user.name or user.email.split("@")[0],
        "email": user.email,
        "role": link.cargo,
        "permissions": link.role.permissao,
    }


def company_payload(company: Company) -> dict:
    return {
        "id": company.id_empresa,
        "nomeFantasia": company.nome_fantasia,
        "razaoSocial": company.razao_social,
        "cnpj": company.cnpj,
        "statusEmpresa": company.status_empresa,
    }


def authenticate(db: Session, email: str, senha: str, api_key: Optional[str]) -> dict:
    company = company_by_api_key(db, api_key)

    user = db.query(User).filter(User.email == email.lower(), User.deleted_at.is_(None)).first()
    # Same message for unknown e-mail and wrong password
    if not user or not verify_password(senha, user.senha):
        raise BusinessError.unauthorized("Credenciais inválidas", reason=f"login {email}")
    if not user.status_user:
        raise BusinessError.unauthorized("Usuário inativo", reason=f"login {email}")

    link = _link(db, user, company)
    token = issue_token(user, company, link)

    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)

    return {
        "token": token,
        "user": user_payload(user, link),
        "apiToken": api_key,
        "company": company_payload(company),
    }


def refresh(db: Session, token: str, api_key: Optional[str]) -> dict:
    company = company_by_api_key(db, api_key)
    claims = decode_access_token(token)
    if not claims:
        raise BusinessError.unauthorized("Token inválido ou expirado")
    if claims.get("companyId") != company.id_empresa:
        raise BusinessError.unauthorized("Token inválido para esta empresa")

    user = (
        db.query(User)
        .filter(User.id_user == claims["sub"], User.deleted_at.is_(None), User.status_user.is_(True))
        .first()
    )
    if not user:
        raise BusinessError.unauthorized("Usuário inválido ou inativo")

    link = _link(db, user, company)
    return {"token": issue_token(user, company, link), "user": user_payload(user, link)}
