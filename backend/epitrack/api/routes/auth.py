"""Auth: login, token refresh and current identity.

Login needs the company API key (x-api-token) besides e-mail and password;
the issued JWT is bound to that company.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, client_ip, get_auth_context, get_db, security
from epitrack.core.audit import AuditLog
from epitrack.core.config import settings
from epitrack.core.exceptions import AppError, BusinessError
from epitrack.schemas.common import envelope
from epitrack.schemas.user import LoginRequest
from epitrack.services import auth_service

router = APIRouter()


@router.post("/login")
def login(
    data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    x_api_token: Optional[str] = Header(None, alias=settings.API_KEY_HEADER),
):
    """Generic "Credenciais inválidas" for unknown e-mail and wrong password alike."""
    try:
        result = auth_service.authenticate(db, data.email, data.senha, x_api_token)
    except AppError as e:
        AuditLog.log_authentication("login", data.email, client_ip(request), False, reason=e.message)
        raise
    AuditLog.log_authentication("login", data.email, client_ip(request), True)
    return envelope("Login realizado com sucesso", result)


@router.post("/refresh")
def refresh(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_api_token: Optional[str] = Header(None, alias=settings.API_KEY_HEADER),
):
    if not credentials or not x_api_token:
        raise BusinessError.unauthorized("x-api-token e Authorization são obrigatórios")
    result = auth_service.refresh(db, credentials.credentials, x_api_token)
    AuditLog.log_authentication("refresh", result["user"]["email"], client_ip(request), True)
    return envelope("Token renovado com sucesso", result)


@router.get("/me")
def me(ctx: AuthContext = Depends(get_auth_context)):
    user = ctx.user
    return envelope("Usuário autenticado", {
        "user": {
            "id": user.id_user,
            "name": user.name or user.email.split("@")[0],
            "email": user.email,
            "role": ctx.cargo,
            "permissions": ctx.permissao,
        },
        "company": auth_service.company_payload(ctx.empresa),
    })
