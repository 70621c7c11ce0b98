from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from epitrack.db.base import Base, new_id


class Company(Base):
    """Tenant. Every collaborator, EPI and process belongs to exactly one company."""
    __tablename__ = "companies"

    id_empresa = Column(String(36), primary_key=True, default=new_id)
    nome_fantasia = Column(String(255), nullable=False)
    razao_social = Column(String(255), nullable=True)
    cnpj = Column(String(14), unique=True, nullable=False)
    uf = Column(String(2), nullable=True)
    cep = Column(String(8), nullable=True)
    logradouro = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    telefone = Column(String(20), nullable=True)
    api_key = Column(String(128), unique=True, nullable=False, index=True)
    status_empresa = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Company {self.nome_fantasia} ({self.id_empresa})>"
