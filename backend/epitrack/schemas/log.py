from datetime import datetime
from typing import Any, Optional

from epitrack.schemas.common import CamelModel


class LogOut(CamelModel):
    id_log: str
    id_empresa: Optional[str] = None
    id_user: Optional[str] = None
    id_colaborador: Optional[str] = None
    id_processo: Optional[str] = None
    id_epi: Optional[str] = None
    tipo: str
    body: Optional[Any] = None
    timestamp: datetime
