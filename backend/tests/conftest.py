import os
from pathlib import Path

_TEST_DB = Path(__file__).resolve().parent / "test_epitrack.db"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB}"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOGIN_RATE_LIMIT_REQUESTS"] = "100000"

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from epitrack.core.permissions import ADMIN, GESTOR, OPERADOR
from epitrack.core.rate_limiter import login_rate_limiter, rate_limiter
from epitrack.core.security import generate_api_key, get_password_hash
from epitrack.db.base import Base
from epitrack.db.init_db import seed_roles
from epitrack.db.session import SessionLocal, engine
from epitrack.main import app
from epitrack.models import AuthCompany, Collaborator, Company, Epi, Role, User
from epitrack.services.auth_service import issue_token

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_roles(db)
    finally:
        db.close()
    rate_limiter.reset()
    login_rate_limiter.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _digits(n: int) -> str:
    return str(uuid.uuid4().int)[:n]


@pytest.fixture
def make_company(db):
    def _make(nome: str = "Construtora Alfa") -> Company:
        company = Company(
            nome_fantasia=nome,
            razao_social=f"{nome} LTDA",
            cnpj=_digits(14),
            api_key=generate_api_key(),
            status_empresa=True,
        )
        db.add(company)
        db.commit()
        db.refresh(company)
        return company
    return _make


@pytest.fixture
def make_user(db):
    def _make(company: Company, cargo: str = ADMIN, email: str = None) -> User:
        user = User(
            name=cargo.title(),
            email=email or f"{cargo.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            senha=get_password_hash(PASSWORD),
            status_user=True,
        )
        db.add(user)
        db.flush()
        role = db.query(Role).filter(Role.cargo == cargo).one()
        db.add(AuthCompany(id_user=user.id_user, id_empresa=company.id_empresa, id_role=role.id_role))
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def headers_for(db):
    """Request headers (API key + bearer token) for a user acting in a company."""
    def _headers(user: User, company: Company) -> dict:
        link = (
            db.query(AuthCompany)
            .filter(AuthCompany.id_user == user.id_user, AuthCompany.id_empresa == company.id_empresa)
            .one()
        )
        return {
            "x-api-token": company.api_key,
            "Authorization": f"Bearer {issue_token(user, company, link)}",
        }
    return _headers


@pytest.fixture
def make_collaborator(db):
    def _make(company: Company, nome: str = "João da Silva", status: bool = True) -> Collaborator:
        colaborador = Collaborator(
            id_empresa=company.id_empresa, nome_colaborador=nome, cpf=_digits(11), status=status
        )
        db.add(colaborador)
        db.commit()
        db.refresh(colaborador)
        return colaborador
    return _make


@pytest.fixture
def make_epi(db):
    def _make(company: Company, quantidade: int = 10, nome: str = "Luva de Vaqueta",
              ca: str = None, preco: str = "10.00", quantidade_minima: int = 2) -> Epi:
        epi = Epi(
            id_empresa=company.id_empresa,
            ca=ca or _digits(5),
            nome_epi=nome,
            quantidade=quantidade,
            quantidade_minima=quantidade_minima,
            preco=Decimal(preco),
            status=True,
        )
        db.add(epi)
        db.commit()
        db.refresh(epi)
        return epi
    return _make


@pytest.fixture
def company(make_company):
    return make_company()


@pytest.fixture
def admin(company, make_user):
    return make_user(company, ADMIN)


@pytest.fixture
def admin_headers(admin, company, headers_for):
    return headers_for(admin, company)


@pytest.fixture
def gestor_headers(company, make_user, headers_for):
    return headers_for(make_user(company, GESTOR), company)


@pytest.fixture
def operador_headers(company, make_user, headers_for):
    return headers_for(make_user(company, OPERADOR), company)


@pytest.fixture
def colaborador(company, make_collaborator):
    return make_collaborator(company)
