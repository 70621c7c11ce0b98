"""FastAPI dependencies: DB session, tenant + user resolution, permission gates.

Every protected request carries two credentials:
1. ``x-api-token``: the company API key (tenant)
2. ``Authorization: Bearer <jwt>``: the user

The user must be linked to the company (AuthCompany); the link gives the role.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Generator, Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from epitrack.core.audit import AuditLog
from epitrack.core.config import settings
from epitrack.core.exceptions import BusinessError
from epitrack.core.permissions import ADMIN, denied_message, has_permission
from epitrack.core.security import decode_access_token
from epitrack.db.session import SessionLocal
from epitrack.models.company import Company
from epitrack.models.user import AuthCompany, User
from epitrack.services.company_service import company_by_api_key

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@dataclass
class AuthContext:
    user: User
    empresa: Company
    cargo: str
    permissao: Dict[str, bool] = field(default_factory=dict)

    @property
    def id_user(self) -> str:
        return self.user.id_user

    @property
    def id_empresa(self) -> str:
        return self.empresa.id_empresa

    @property
    def is_admin(self) -> bool:
        return self.cargo == ADMIN


def active_user(db: Session, id_user: str) -> Optional[User]:
    return (
        db.query(User)
        .filter(User.id_user == id_user, User.deleted_at.is_(None), User.status_user.is_(True))
        .first()
    )


def get_auth_context(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_api_token: Optional[str] = Header(None, alias=settings.API_KEY_HEADER),
) -> AuthContext:
    if not credentials or not x_api_token:
        raise BusinessError.unauthorized(
            "x-api-token e Authorization são obrigatórios", reason="missing credentials"
        )

    company = company_by_api_key(db, x_api_token)

    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise BusinessError.unauthorized("Token expirado ou inválido")
    if claims.get("companyId") and claims["companyId"] != company.id_empresa:
        raise BusinessError.unauthorized("Token inválido para esta empresa")

    user = active_user(db, claims["sub"])
    if not user:
        raise BusinessError.unauthorized("Usuário inválido ou inativo")

    link = (
        db.query(AuthCompany)
        .filter(AuthCompany.id_user == user.id_user, AuthCompany.id_empresa == company.id_empresa)
        .first()
    )
    if not link:
        raise BusinessError.unauthorized("Usuário não autorizado para esta empresa")

    return AuthContext(user=user, empresa=company, cargo=link.cargo, permissao=dict(link.role.permissao or {}))


def require_permission(permission: str):
    """
    Dependency factory gating an endpoint on a role flag.

    Usage:
        ctx: AuthContext = Depends(require_permission("process:create"))
    """
    def checker(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not has_permission(ctx.permissao, permission):
            AuditLog.log_access_denied(permission, ctx.id_user, ctx.id_empresa, f"role {ctx.cargo}")
            raise BusinessError.forbidden(denied_message(permission), reason=f"{ctx.cargo} lacks {permission}")
        return ctx

    return checker


def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not ctx.is_admin:
        AuditLog.log_access_denied("admin", ctx.id_user, ctx.id_empresa, f"role {ctx.cargo}")
        raise BusinessError.forbidden("Acesso negado - apenas administradores")
    return ctx


def ensure_tenant(ctx: AuthContext, id_empresa: str) -> None:
    """Path-addressed tenant must be the caller's own company."""
    if id_empresa != ctx.id_empresa:
        raise BusinessError.forbidden("Acesso negado", reason=f"{ctx.id_user} -> empresa {id_empresa}")


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
