"""EPI inventory. Items are addressed by CA within the caller's company."""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, get_db, require_permission
from epitrack.core.audit import EPI_CREATED, EPI_DELETED, EPI_UPDATED, AuditLog
from epitrack.schemas.common import dump, dump_list, envelope
from epitrack.schemas.epi import EpiCreate, EpiOut, EpiUpdate
from epitrack.services import epi_service

router = APIRouter()


@router.get("")
def list_epis(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("epi:read")),
):
    epis, meta = epi_service.list_epis(db, ctx.id_empresa, page, limit)
    return envelope("EPIs recuperados com sucesso", dump_list(EpiOut, epis), meta)


@router.get("/low-stock")
def low_stock(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("epi:read")),
):
    """Active EPIs at or below their minimum quantity."""
    return envelope("EPIs com estoque baixo", dump_list(EpiOut, epi_service.low_stock(db, ctx.id_empresa)))


@router.get("/{ca}")
def get_epi(
    ca: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("epi:read")),
):
    return envelope("EPI recuperado com sucesso", dump(EpiOut, epi_service.get_by_ca(db, ctx.id_empresa, ca)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_epi(
    data: EpiCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("epi:create")),
):
    epi = epi_service.create_epi(db, ctx.id_empresa, data)
    payload = dump(EpiOut, epi)
    background_tasks.add_task(
        AuditLog.record, EPI_CREATED,
        id_empresa=ctx.id_empresa, id_user=ctx.id_user, id_epi=epi.id_epi, body=payload,
    )
    return envelope("EPI criado com sucesso", payload)


@router.put("/{ca}")
def update_epi(
    ca: str,
    data: EpiUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("epi:update")),
):
    epi, changes = epi_service.update_epi(db, ctx.id_empresa, ca, data)
    if changes:
        background_tasks.add_task(
            AuditLog.record, EPI_UPDATED,
            id_empresa=ctx.id_empresa, id_user=ctx.id_user, id_epi=epi.id_epi, body={"changes": changes},
        )
    return envelope("EPI atualizado com sucesso", dump(EpiOut, epi))


@router.delete("/{ca}")
def delete_epi(
    ca: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("epi:delete")),
):
    snapshot = epi_service.delete_epi(db, ctx.id_empresa, ca)
    background_tasks.add_task(
        AuditLog.record, EPI_DELETED,
        id_empresa=ctx.id_empresa, id_user=ctx.id_user, id_epi=snapshot["idEpi"], body=snapshot,
    )
    return envelope("EPI deletado com sucesso")
