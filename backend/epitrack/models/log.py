"""
Append-only audit log.

Entity references are plain ids (no foreign keys) so an entry survives the
deletion of the EPI, process or collaborator it describes.
"""
from sqlalchemy import Column, DateTime, String
from sqlalchemy.types import JSON

from epitrack.core.dates import utcnow
from epitrack.db.base import Base, new_id


class Log(Base):
    __tablename__ = "logs"

    id_log = Column(String(36), primary_key=True, default=new_id)
    id_empresa = Column(String(36), nullable=True, index=True)
    id_user = Column(String(36), nullable=True, index=True)
    id_colaborador = Column(String(36), nullable=True, index=True)
    id_processo = Column(String(36), nullable=True, index=True)
    id_epi = Column(String(36), nullable=True, index=True)
    tipo = Column(String(64), nullable=False, index=True)  # EPI_CREATED, PROCESS_DELIVERED, ...
    body = Column(JSON, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
