"""Create all tables and seed the bootstrap data. Run on app startup.

Seeds the three roles and, on an empty database, a default company plus an
ADMIN user with a random password (logged once, change it after first login).
"""
import logging
import secrets

from sqlalchemy.orm import Session

from epitrack.core.config import settings
from epitrack.core.permissions import ADMIN, ROLE_PERMISSIONS
from epitrack.core.security import generate_api_key, get_password_hash
from epitrack.db.base import Base
from epitrack.db.session import SessionLocal, engine
from epitrack import models  # noqa: F401 - register models
from epitrack.models.company import Company
from epitrack.models.user import AuthCompany, Role, User

logger = logging.getLogger(__name__)

DEFAULT_CNPJ = "00000000000000"


def seed_roles(db: Session) -> None:
    existing = {r.cargo: r for r in db.query(Role).all()}
    for cargo, permissao in ROLE_PERMISSIONS.items():
        if cargo in existing:
            existing[cargo].permissao = dict(permissao)
        else:
            db.add(Role(cargo=cargo, permissao=dict(permissao)))
    db.commit()


def seed_default_tenant(db: Session) -> None:
    if db.query(User).count() > 0:
        return

    default_password = secrets.token_urlsafe(16)
    company = Company(
        nome_fantasia=settings.DEFAULT_COMPANY_NAME,
        cnpj=DEFAULT_CNPJ,
        api_key=generate_api_key(),
        status_empresa=True,
    )
    user = User(
        name="Administrador",
        email=settings.DEFAULT_ADMIN_EMAIL.lower(),
        senha=get_password_hash(default_password),
        status_user=True,
    )
    db.add_all([company, user])
    db.flush()
    admin_role = db.query(Role).filter(Role.cargo == ADMIN).one()
    db.add(AuthCompany(id_user=user.id_user, id_empresa=company.id_empresa, id_role=admin_role.id_role))
    db.commit()

    logger.warning(
        "Default admin created - change this password after first login\n"
        f"  Email:    {user.email}\n"
        f"  Password: {default_password}\n"
        f"  API key:  {company.api_key}"
    )


def init_db():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_roles(db)
        seed_default_tenant(db)
    finally:
        db.close()
