"""Users and company memberships."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, ensure_tenant, get_db, require_admin, require_permission
from epitrack.core.exceptions import BusinessError
from epitrack.schemas.common import dump, envelope
from epitrack.schemas.user import UserCreate, UserLink, UserOut
from epitrack.services import user_service

router = APIRouter()


@router.post("/{id_empresa}", status_code=status.HTTP_201_CREATED)
def create_user(
    id_empresa: str,
    data: UserCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    ensure_tenant(ctx, id_empresa)
    user = user_service.create_user(db, id_empresa, data)
    return envelope("Usuário criado com sucesso", dump(UserOut, user))


@router.get("/{id_user}")
def get_user(
    id_user: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("user:read")),
):
    user = user_service.get_user(db, id_user)
    if id_user != ctx.id_user and not any(link.id_empresa == ctx.id_empresa for link in user.companies):
        # Users of other companies are invisible
        raise BusinessError.not_found("Usuário")
    return envelope("Usuário encontrado com sucesso", dump(UserOut, user))


@router.post("/{id_user}/company/{id_empresa}")
def link_user_to_company(
    id_user: str,
    id_empresa: str,
    data: UserLink,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    ensure_tenant(ctx, id_empresa)
    user = user_service.add_to_company(db, id_user, id_empresa, data.cargo)
    return envelope("Usuário vinculado à empresa com sucesso", dump(UserOut, user))


@router.delete("/{id_user}")
def delete_user(
    id_user: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    if id_user == ctx.id_user:
        raise BusinessError.bad_request("Não é possível remover o próprio usuário")
    user = user_service.get_user(db, id_user)
    if not any(link.id_empresa == ctx.id_empresa for link in user.companies):
        raise BusinessError.not_found("Usuário")
    user_service.soft_delete(db, id_user)
    return envelope("Usuário removido com sucesso")
