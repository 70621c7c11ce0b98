from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from epitrack.db.base import Base, new_id

MAX_BIOMETRIAS_POR_COLABORADOR = 2


class Biometria(Base):
    """Registered biometric template reference. Matching is not performed by this service."""
    __tablename__ = "biometrias"

    id_biometria = Column(String(36), primary_key=True, default=new_id)
    id_colaborador = Column(String(36), ForeignKey("collaborators.id_colaborador", ondelete="CASCADE"), nullable=False, index=True)
    biometria_path = Column(String(1024), nullable=True)
    certificado_path = Column(String(1024), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    colaborador = relationship("Collaborator", back_populates="biometrias")
