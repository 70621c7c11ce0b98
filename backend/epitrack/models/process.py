"""
Process: one EPI issuance lifecycle.

Status flow: pending (status_entrega=False) -> delivered -> returned.
INVARIANTS:
- status_entrega is True iff data_entrega is set
- data_devolucao only after delivery, at most once
- every ProcessEpi keeps its quantidade debited from the EPI until the
  process is returned, deleted, or its item list changes
"""
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from epitrack.db.base import Base, new_id


class Process(Base):
    __tablename__ = "processes"

    id_processo = Column(String(36), primary_key=True, default=new_id)
    id_empresa = Column(String(36), ForeignKey("companies.id_empresa", ondelete="CASCADE"), nullable=False, index=True)
    id_colaborador = Column(String(36), ForeignKey("collaborators.id_colaborador", ondelete="RESTRICT"), nullable=False, index=True)
    data_agendada = Column(DateTime, nullable=False)
    data_entrega = Column(DateTime, nullable=True)
    data_devolucao = Column(DateTime, nullable=True)
    status_entrega = Column(Boolean, nullable=False, default=False, index=True)
    observacoes = Column(Text, nullable=True)
    pdf_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    empresa = relationship("Company")
    colaborador = relationship("Collaborator", back_populates="processos")
    process_epis = relationship(
        "ProcessEpi",
        back_populates="processo",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def devolvido(self) -> bool:
        return self.data_devolucao is not None

    def reservations(self) -> dict:
        """{id_epi: quantidade} currently debited by this process."""
        return {pe.id_epi: pe.quantidade for pe in self.process_epis}


class ProcessEpi(Base):
    __tablename__ = "process_epis"
    __table_args__ = (
        UniqueConstraint("id_processo", "id_epi", name="uq_process_epis_processo_epi"),
        CheckConstraint("quantidade >= 1", name="ck_process_epis_quantidade_positive"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    id_processo = Column(String(36), ForeignKey("processes.id_processo", ondelete="CASCADE"), nullable=False, index=True)
    id_epi = Column(String(36), ForeignKey("epis.id_epi", ondelete="RESTRICT"), nullable=False, index=True)
    quantidade = Column(Integer, nullable=False, default=1)

    processo = relationship("Process", back_populates="process_epis")
    epi = relationship("Epi")
