from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from epitrack.core.dates import utcnow
from epitrack.db.base import Base, new_id

SAIDA = "saida"
ENTRADA = "entrada"

MOTIVO_ENTREGA = "entrega"
MOTIVO_DEVOLUCAO = "devolucao"
MOTIVO_ESTORNO = "estorno"


class EpiMovement(Base):
    """Stock ledger row written for every debit (saida) and credit (entrada) of an EPI."""
    __tablename__ = "epi_movements"

    id_movimento = Column(String(36), primary_key=True, default=new_id)
    id_empresa = Column(String(36), ForeignKey("companies.id_empresa", ondelete="CASCADE"), nullable=False, index=True)
    id_epi = Column(String(36), ForeignKey("epis.id_epi", ondelete="CASCADE"), nullable=False, index=True)
    id_processo = Column(String(36), ForeignKey("processes.id_processo", ondelete="SET NULL"), nullable=True, index=True)
    tipo_movimento = Column(String(16), nullable=False)  # saida | entrada
    motivo = Column(String(16), nullable=False)  # entrega | devolucao | estorno
    quantidade = Column(Integer, nullable=False)
    valor_unitario = Column(Numeric(10, 2), nullable=False, default=0)
    data_movimento = Column(DateTime, nullable=False, default=utcnow, index=True)

    epi = relationship("Epi")
