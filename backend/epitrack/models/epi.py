from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from epitrack.db.base import Base, new_id


class Epi(Base):
    """
    EPI (personal protective equipment) stock item.

    INVARIANT: quantidade (on hand) never goes negative. Process debits use a
    conditional UPDATE (see services.inventory_service), the CHECK constraint
    is the last line.
    """
    __tablename__ = "epis"
    __table_args__ = (
        UniqueConstraint("id_empresa", "ca", name="uq_epis_empresa_ca"),
        CheckConstraint("quantidade >= 0", name="ck_epis_quantidade_non_negative"),
    )

    id_epi = Column(String(36), primary_key=True, default=new_id)
    id_empresa = Column(String(36), ForeignKey("companies.id_empresa", ondelete="CASCADE"), nullable=False, index=True)
    ca = Column(String(16), nullable=False)  # certificado de aprovação
    nome_epi = Column(String(255), nullable=False)
    descricao = Column(Text, nullable=True)
    quantidade = Column(Integer, nullable=False, default=0)
    quantidade_minima = Column(Integer, nullable=False, default=0)
    preco = Column(Numeric(10, 2), nullable=True)
    data_compra = Column(Date, nullable=True)
    vida_util = Column(Date, nullable=True)
    validade = Column(Date, nullable=True)
    status = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    empresa = relationship("Company")

    @property
    def low_stock(self) -> bool:
        return (self.quantidade or 0) <= (self.quantidade_minima or 0)
