from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from epitrack.db.base import Base, new_id


class Collaborator(Base):
    """Workforce member who receives EPIs. Only active collaborators get new processes."""
    __tablename__ = "collaborators"

    id_colaborador = Column(String(36), primary_key=True, default=new_id)
    id_empresa = Column(String(36), ForeignKey("companies.id_empresa", ondelete="CASCADE"), nullable=False, index=True)
    nome_colaborador = Column(String(255), nullable=False)
    cpf = Column(String(11), unique=True, nullable=False)
    status = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    empresa = relationship("Company")
    processos = relationship("Process", back_populates="colaborador", passive_deletes=True)
    biometrias = relationship("Biometria", back_populates="colaborador", cascade="all, delete-orphan", passive_deletes=True)
