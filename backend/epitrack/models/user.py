"""
Users, roles and the user <-> company link.

A user may work for several companies; the role is chosen per company
(AuthCompany). Role.permissao holds the CRUD flags checked by
``require_permission``: {"create": bool, "read": bool, "update": bool, "delete": bool}.
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from epitrack.db.base import Base, new_id


class User(Base):
    __tablename__ = "users"

    id_user = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    senha = Column(String(255), nullable=False)  # bcrypt hash
    status_user = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, server_default=func.now())

    companies = relationship("AuthCompany", back_populates="user", cascade="all, delete-orphan")


class Role(Base):
    __tablename__ = "roles"

    id_role = Column(String(36), primary_key=True, default=new_id)
    cargo = Column(String(32), unique=True, nullable=False)  # ADMIN | GESTOR | OPERADOR
    permissao = Column(JSON, nullable=False, default=dict)


class AuthCompany(Base):
    __tablename__ = "auth_companies"

    id_user = Column(String(36), ForeignKey("users.id_user", ondelete="CASCADE"), primary_key=True)
    id_empresa = Column(String(36), ForeignKey("companies.id_empresa", ondelete="CASCADE"), primary_key=True)
    id_role = Column(String(36), ForeignKey("roles.id_role"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="companies")
    empresa = relationship("Company")
    role = relationship("Role", lazy="joined")

    @property
    def cargo(self) -> str:
        return self.role.cargo if self.role else ""
