"""Process (EPI issuance) endpoints."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from epitrack.api.deps import AuthContext, ensure_tenant, get_db, require_admin, require_permission
from epitrack.core.audit import (
    PROCESS_CREATED, PROCESS_DELETED, PROCESS_DELIVERED, PROCESS_RETURNED, PROCESS_UPDATED, AuditLog,
)
from epitrack.schemas.common import dump, dump_list, envelope
from epitrack.schemas.process import ConfirmDelivery, ProcessCreate, ProcessOut, ProcessUpdate, RegisterReturn
from epitrack.services.pdf_service import generate_termo_pdf
from epitrack.services.process_service import STATUS_TODOS, ProcessService

router = APIRouter()


def _audit(background_tasks: BackgroundTasks, tipo: str, ctx: AuthContext, process, body=None):
    background_tasks.add_task(
        AuditLog.record,
        tipo,
        id_empresa=process.id_empresa,
        id_user=ctx.id_user,
        id_processo=process.id_processo,
        id_colaborador=process.id_colaborador,
        body=body,
    )


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_process(
    data: ProcessCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:create")),
):
    """Create a pending process and debit its EPIs from stock."""
    process = ProcessService(db).create_process(data, ctx.id_empresa)
    _audit(background_tasks, PROCESS_CREATED, ctx, process, {"epis": process.reservations()})
    return envelope("Processo criado com sucesso", dump(ProcessOut, process))


@router.get("/list")
def list_processes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    status_filter: str = Query(STATUS_TODOS, alias="status"),
    data_inicio: Optional[date] = Query(None, alias="dataInicio"),
    data_fim: Optional[date] = Query(None, alias="dataFim"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    """All tenants. Administrators only."""
    processes, meta = ProcessService(db).list_processes(page, limit, search, status_filter, data_inicio, data_fim)
    return envelope("Processos encontrados", dump_list(ProcessOut, processes), meta)


@router.get("/empresa/{id_empresa}")
def processes_by_empresa(
    id_empresa: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: str = Query(STATUS_TODOS, alias="status"),
    data_inicio: Optional[date] = Query(None, alias="dataInicio"),
    data_fim: Optional[date] = Query(None, alias="dataFim"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:read")),
):
    ensure_tenant(ctx, id_empresa)
    processes, meta = ProcessService(db).get_processes_by_empresa(
        id_empresa, page, limit, status_filter, data_inicio, data_fim
    )
    return envelope("Processos encontrados", dump_list(ProcessOut, processes), meta)


@router.get("/colaborador/{id_colaborador}")
def processes_by_colaborador(
    id_colaborador: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: str = Query(STATUS_TODOS, alias="status"),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:read")),
):
    processes, meta = ProcessService(db).get_processes_by_colaborador(
        id_colaborador, ctx.id_empresa, page, limit, status_filter
    )
    return envelope("Processos encontrados", dump_list(ProcessOut, processes), meta)


@router.get("/{id_processo}")
def get_process(
    id_processo: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:read")),
):
    service = ProcessService(db)
    if ctx.is_admin:
        process = service.get_process(id_processo)
    else:
        process = service.validate_process_ownership(id_processo, ctx.id_empresa)
    return envelope("Processo encontrado", dump(ProcessOut, process))


@router.get("/{id_processo}/termo")
def process_termo(
    id_processo: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:read")),
):
    """Delivery receipt (PDF) for printing and signature."""
    process = ProcessService(db).validate_process_ownership(id_processo, ctx.id_empresa)
    pdf_buffer = generate_termo_pdf(process)
    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=termo_{id_processo}.pdf"},
    )


@router.put("/{id_processo}")
def update_process(
    id_processo: str,
    data: ProcessUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:update")),
):
    process = ProcessService(db).update_process(id_processo, data, ctx.id_empresa)
    _audit(background_tasks, PROCESS_UPDATED, ctx, process,
           {"campos": sorted(data.model_dump(exclude_unset=True, by_alias=True))})
    return envelope("Processo atualizado com sucesso", dump(ProcessOut, process))


@router.delete("/{id_processo}")
def delete_process(
    id_processo: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:delete")),
):
    service = ProcessService(db)
    process = service.validate_process_ownership(id_processo, ctx.id_empresa)
    snapshot = {"idColaborador": process.id_colaborador, "epis": process.reservations()}
    id_empresa, id_colaborador = process.id_empresa, process.id_colaborador
    message = service.delete_process(id_processo, ctx.id_empresa)
    background_tasks.add_task(
        AuditLog.record,
        PROCESS_DELETED,
        id_empresa=id_empresa,
        id_user=ctx.id_user,
        id_processo=id_processo,
        id_colaborador=id_colaborador,
        body=snapshot,
    )
    return envelope(message)


@router.patch("/{id_processo}/confirm-delivery")
def confirm_delivery(
    id_processo: str,
    background_tasks: BackgroundTasks,
    data: Optional[ConfirmDelivery] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:update")),
):
    """
    Mark as delivered. Identified by process id only, as in the kiosk flow;
    no stock change (EPIs were debited on creation).
    """
    data = data or ConfirmDelivery()
    # Kiosk trust boundary: no tenant filter, any caller with process:update may confirm by id
    process = ProcessService(db).confirm_delivery(id_processo, data.data_entrega, data.pdf_url)
    _audit(background_tasks, PROCESS_DELIVERED, ctx, process)
    return envelope("Entrega confirmada com sucesso", dump(ProcessOut, process))


@router.patch("/{id_processo}/register-return")
def register_return(
    id_processo: str,
    data: RegisterReturn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_permission("process:update")),
):
    process = ProcessService(db).register_return(id_processo, data.data_devolucao, data.observacoes, ctx.id_empresa)
    _audit(background_tasks, PROCESS_RETURNED, ctx, process, {"epis": process.reservations()})
    return envelope("Devolução registrada com sucesso", dump(ProcessOut, process))
