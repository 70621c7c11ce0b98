from fastapi import APIRouter, Depends

from epitrack.api.deps import AuthContext, require_permission
from epitrack.schemas.common import envelope
from epitrack.services import ca_service

router = APIRouter()


@router.get("/{ca}")
def consultar_ca(ca: str, ctx: AuthContext = Depends(require_permission("ca:read"))):
    """Proxy to the external CA registry."""
    return envelope("Consulta realizada com sucesso", ca_service.consultar_ca(ca))
