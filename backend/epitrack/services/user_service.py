"""Users and their company memberships."""
import logging

from sqlalchemy.orm import Session

from epitrack.core.dates import utcnow
from epitrack.core.exceptions import BusinessError, NotFoundError
from epitrack.core.security import get_password_hash
from epitrack.models.user import AuthCompany, Role, User
from epitrack.schemas.user import UserCreate
from epitrack.services.company_service import get_company

logger = logging.getLogger(__name__)


def get_role(db: Session, cargo: str) -> Role:
    role = db.query(Role).filter(Role.cargo == cargo).first()
    if not role:
        raise NotFoundError("Cargo do usuário não encontrado")
    return role


def get_user(db: Session, id_user: str) -> User:
    user = db.query(User).filter(User.id_user == id_user, User.deleted_at.is_(None)).first()
    if not user:
        raise NotFoundError("Usuário não encontrado")
    return user


def link_user(db: Session, user: User, id_empresa: str, cargo: str) -> AuthCompany:
    """Create or change the user's role in a company. Caller commits."""
    get_company(db, id_empresa)
    role = get_role(db, cargo)
    link = (
        db.query(AuthCompany)
        .filter(AuthCompany.id_user == user.id_user, AuthCompany.id_empresa == id_empresa)
        .first()
    )
    if link:
        link.id_role = role.id_role
    else:
        link = AuthCompany(id_user=user.id_user, id_empresa=id_empresa, id_role=role.id_role)
        db.add(link)
    return link


def create_user(db: Session, id_empresa: str, data: UserCreate) -> User:
    email = data.email.lower()
    if db.query(User.id_user).filter(User.email == email).first():
        raise BusinessError.conflict("E-mail já cadastrado")
    user = User(
        name=data.name,
        email=email,
        senha=get_password_hash(data.senha),
        status_user=True,
    )
    db.add(user)
    db.flush()
    link_user(db, user, id_empresa, data.cargo)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id_user} created for empresa {id_empresa} as {data.cargo}")
    return user


def add_to_company(db: Session, id_user: str, id_empresa: str, cargo: str) -> User:
    user = get_user(db, id_user)
    link_user(db, user, id_empresa, cargo)
    db.commit()
    db.refresh(user)
    return user


def soft_delete(db: Session, id_user: str) -> None:
    user = get_user(db, id_user)
    user.deleted_at = utcnow()
    user.status_user = False
    db.commit()
    logger.warning(f"User {id_user} soft-deleted")
