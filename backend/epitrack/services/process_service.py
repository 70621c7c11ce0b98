"""
Process engine: EPI issuance lifecycle with stock reservation.

A process debits its items from stock when it is created and keeps them
debited while pending or delivered. Returning or deleting the process
credits them back; replacing the item list reconciles old and new
reservations by net delta. Every mutation runs in one transaction.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from epitrack.core.dates import end_of_day, start_of_day, to_naive_utc, utcnow
from epitrack.core.exceptions import BusinessError, InsufficientStockError, NotFoundError
from epitrack.db.session import transaction
from epitrack.models.collaborator import Collaborator
from epitrack.models.company import Company
from epitrack.models.epi import Epi
from epitrack.models.movement import MOTIVO_DEVOLUCAO, MOTIVO_ESTORNO
from epitrack.models.process import Process, ProcessEpi
from epitrack.schemas.common import pagination
from epitrack.schemas.process import ProcessCreate, ProcessItemIn, ProcessUpdate
from epitrack.services import inventory_service

logger = logging.getLogger(__name__)

STATUS_TODOS = "todos"
STATUS_PENDENTES = "pendentes"
STATUS_ENTREGUES = "entregues"
STATUS_FILTERS = (STATUS_TODOS, STATUS_PENDENTES, STATUS_ENTREGUES)


def merge_items(items: Iterable[ProcessItemIn]) -> "OrderedDict[str, int]":
    """Collapse repeated idEpi entries into one reservation (quantities summed)."""
    merged: "OrderedDict[str, int]" = OrderedDict()
    for item in items:
        merged[item.id_epi] = merged.get(item.id_epi, 0) + item.quantidade
    return merged


class ProcessService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------

    def _hydrated(self) -> Query:
        return self.db.query(Process).options(
            joinedload(Process.empresa),
            joinedload(Process.colaborador),
            selectinload(Process.process_epis).joinedload(ProcessEpi.epi),
        )

    def get_process(self, id_processo: str, id_empresa: Optional[str] = None) -> Process:
        query = self._hydrated().filter(Process.id_processo == id_processo)
        if id_empresa is not None:
            query = query.filter(Process.id_empresa == id_empresa)
        process = query.first()
        if not process:
            raise BusinessError.not_found("Processo", reason=f"id={id_processo} empresa={id_empresa}")
        return process

    def validate_process_ownership(self, id_processo: str, id_empresa: str) -> Process:
        """NotFound (not Forbidden) when the process belongs to another tenant."""
        return self.get_process(id_processo, id_empresa)

    def _active_collaborator(self, id_colaborador: str, id_empresa: str) -> Collaborator:
        colaborador = (
            self.db.query(Collaborator)
            .filter(
                Collaborator.id_colaborador == id_colaborador,
                Collaborator.id_empresa == id_empresa,
                Collaborator.status.is_(True),
            )
            .first()
        )
        if not colaborador:
            raise NotFoundError("Colaborador não encontrado ou inativo")
        return colaborador

    def _tenant_epis(self, ids: Iterable[str], id_empresa: str) -> Dict[str, Epi]:
        ids = list(ids)
        if not ids:
            return {}
        epis = self.db.query(Epi).filter(Epi.id_epi.in_(ids), Epi.id_empresa == id_empresa).all()
        found = {epi.id_epi: epi for epi in epis}
        missing = [i for i in ids if i not in found]
        if missing:
            logger.info(f"EPIs not found for empresa {id_empresa}: {missing}")
            raise NotFoundError("Um ou mais EPIs não foram encontrados")
        return found

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def create_process(self, data: ProcessCreate, id_empresa: str) -> Process:
        self._active_collaborator(data.id_colaborador, id_empresa)
        requested = merge_items(data.epis)
        epis = self._tenant_epis(requested.keys(), id_empresa)

        # Reject before touching anything; the conditional UPDATE below still
        # guards against a concurrent request draining the same EPI.
        for id_epi, quantidade in requested.items():
            epi = epis[id_epi]
            if quantidade > epi.quantidade:
                raise InsufficientStockError(epi.nome_epi, epi.quantidade, quantidade, id_epi)

        with transaction(self.db):
            process = Process(
                id_empresa=id_empresa,
                id_colaborador=data.id_colaborador,
                data_agendada=to_naive_utc(data.data_agendada),
                observacoes=data.observacoes,
                status_entrega=False,
            )
            process.process_epis = [
                ProcessEpi(id_epi=id_epi, quantidade=quantidade) for id_epi, quantidade in requested.items()
            ]
            self.db.add(process)
            self.db.flush()
            for id_epi, quantidade in requested.items():
                inventory_service.debit(self.db, epis[id_epi], quantidade, process.id_processo)

        logger.info(f"Process {process.id_processo} created for empresa {id_empresa} with {dict(requested)}")
        return self.get_process(process.id_processo)

    def _reconcile_items(self, process: Process, new: Dict[str, int]) -> None:
        """
        Replace the reserved items of `process` with `new`.

        Per EPI only the difference between the old and the new reservation
        moves: a positive delta is debited, a negative one is credited back.
        Availability counts the old reservation as already returned.
        """
        old = process.reservations()
        epis = self._tenant_epis(new.keys(), process.id_empresa)
        for id_epi in old:
            if id_epi not in epis:
                epis[id_epi] = self.db.get(Epi, id_epi)

        for id_epi, quantidade in new.items():
            epi = epis[id_epi]
            restored = old.get(id_epi, 0)
            if quantidade > epi.quantidade + restored:
                raise InsufficientStockError(epi.nome_epi, epi.quantidade + restored, quantidade, id_epi)

        for id_epi in set(old) | set(new):
            delta = new.get(id_epi, 0) - old.get(id_epi, 0)
            if delta > 0:
                inventory_service.debit(
                    self.db, epis[id_epi], delta, process.id_processo,
                    solicitado=new[id_epi], restored=old.get(id_epi, 0),
                )
            elif delta < 0:
                inventory_service.credit(self.db, epis[id_epi], -delta, MOTIVO_ESTORNO, process.id_processo)

        by_epi = {pe.id_epi: pe for pe in process.process_epis}
        for id_epi, pe in by_epi.items():
            if id_epi not in new:
                process.process_epis.remove(pe)
            else:
                pe.quantidade = new[id_epi]
        for id_epi, quantidade in new.items():
            if id_epi not in by_epi:
                process.process_epis.append(ProcessEpi(id_epi=id_epi, quantidade=quantidade))

    def _apply_delivery_fields(self, process: Process, fields: dict) -> None:
        status = fields.get("status_entrega")
        data_entrega = to_naive_utc(fields.get("data_entrega"))

        if status is False:
            if data_entrega is not None:
                raise BusinessError.bad_request("dataEntrega exige statusEntrega verdadeiro")
            if process.devolvido:
                raise BusinessError.invalid_transition("Processo já foi devolvido")
            process.status_entrega = False
            process.data_entrega = None
        elif data_entrega is not None:
            process.status_entrega = True
            process.data_entrega = data_entrega
        elif status is True and not process.status_entrega:
            process.status_entrega = True
            process.data_entrega = utcnow()

    def _credit_all(self, process: Process, motivo: str) -> None:
        for pe in process.process_epis:
            inventory_service.credit(self.db, pe.epi, pe.quantidade, motivo, process.id_processo)

    def _claim(self, process: Process, *conditions, **values) -> bool:
        """
        Conditional UPDATE of the process row, run first inside a transaction.

        Returns False when the row is gone or `conditions` no longer hold, so
        a caller working from an earlier read never moves stock twice. The
        UPDATE also holds the row's write lock until commit, which serializes
        concurrent mutations of the same process.
        """
        values.setdefault("updated_at", utcnow())
        rows = (
            self.db.query(Process)
            .filter(Process.id_processo == process.id_processo, *conditions)
            .update({getattr(Process, k): v for k, v in values.items()}, synchronize_session=False)
        )
        return rows == 1

    def _reload(self, process: Process) -> None:
        """Drop the cached state of `process` and its items; next access re-reads them."""
        for pe in process.process_epis:
            self.db.expire(pe)
        self.db.expire(process)

    def _transition_error(self, id_processo: str) -> Exception:
        """Error for a claim that matched no row, based on the committed state."""
        row = (
            self.db.query(Process.status_entrega, Process.data_devolucao)
            .filter(Process.id_processo == id_processo)
            .first()
        )
        if row is None:
            return BusinessError.not_found("Processo", reason=f"id={id_processo} removed concurrently")
        if row.data_devolucao is not None:
            return BusinessError.invalid_transition("Processo já foi devolvido")
        if row.status_entrega:
            return BusinessError.invalid_transition("Processo já foi entregue")
        return BusinessError.invalid_transition("Processo ainda não foi entregue")

    def update_process(self, id_processo: str, data: ProcessUpdate, id_empresa: str) -> Process:
        process = self.get_process(id_processo, id_empresa)
        fields = data.model_dump(exclude_unset=True)

        with transaction(self.db):
            if not self._claim(process):
                raise self._transition_error(id_processo)
            self._reload(process)

            if fields.get("id_colaborador") and fields["id_colaborador"] != process.id_colaborador:
                self._active_collaborator(fields["id_colaborador"], id_empresa)
                process.id_colaborador = fields["id_colaborador"]
            if fields.get("data_agendada") is not None:
                process.data_agendada = to_naive_utc(fields["data_agendada"])
            if "observacoes" in fields:
                process.observacoes = fields["observacoes"]
            if "pdf_url" in fields:
                process.pdf_url = fields["pdf_url"]

            if data.epis is not None:
                if process.devolvido:
                    raise BusinessError.invalid_transition("Processo já foi devolvido")
                self._reconcile_items(process, merge_items(data.epis))
                self.db.flush()

            self._apply_delivery_fields(process, fields)

            data_devolucao = to_naive_utc(fields.get("data_devolucao"))
            if data_devolucao is not None:
                if process.devolvido:
                    process.data_devolucao = data_devolucao
                else:
                    if not process.status_entrega:
                        raise BusinessError.invalid_transition("Processo ainda não foi entregue")
                    process.data_devolucao = data_devolucao
                    self._credit_all(process, MOTIVO_DEVOLUCAO)

            process.updated_at = utcnow()

        logger.info(f"Process {id_processo} updated: {sorted(fields)}")
        return self.get_process(id_processo)

    def delete_process(self, id_processo: str, id_empresa: str) -> str:
        process = self.get_process(id_processo, id_empresa)
        with transaction(self.db):
            if not self._claim(process):
                raise self._transition_error(id_processo)
            self._reload(process)
            # A returned process already gave its items back
            if not process.devolvido:
                for pe in process.process_epis:
                    inventory_service.credit(self.db, pe.epi, pe.quantidade, MOTIVO_ESTORNO)
            self.db.delete(process)
        logger.info(f"Process {id_processo} deleted")
        return "Processo deletado com sucesso"

    def confirm_delivery(
        self,
        id_processo: str,
        data_entrega: Optional[datetime] = None,
        pdf_url: Optional[str] = None,
        id_empresa: Optional[str] = None,
    ) -> Process:
        """
        Mark a pending process as delivered. Stock was debited on creation.

        `id_empresa` is optional: the kiosk confirmation flow identifies the
        process by id alone.
        """
        process = self.get_process(id_processo, id_empresa)
        if process.status_entrega:
            raise BusinessError.invalid_transition("Processo já foi entregue")
        values = {"status_entrega": True, "data_entrega": to_naive_utc(data_entrega) or utcnow()}
        if pdf_url:
            values["pdf_url"] = pdf_url
        with transaction(self.db):
            if not self._claim(process, Process.status_entrega.is_(False), **values):
                raise self._transition_error(id_processo)
        return self.get_process(id_processo)

    def register_return(
        self,
        id_processo: str,
        data_devolucao: Optional[datetime],
        observacoes: Optional[str] = None,
        id_empresa: Optional[str] = None,
    ) -> Process:
        process = self.get_process(id_processo, id_empresa)
        if not process.status_entrega:
            raise BusinessError.invalid_transition("Processo ainda não foi entregue")
        if process.devolvido:
            raise BusinessError.invalid_transition("Processo já foi devolvido")
        values = {"data_devolucao": to_naive_utc(data_devolucao) or utcnow()}
        if observacoes is not None:
            values["observacoes"] = observacoes
        with transaction(self.db):
            claimed = self._claim(
                process, Process.status_entrega.is_(True), Process.data_devolucao.is_(None), **values
            )
            if not claimed:
                raise self._transition_error(id_processo)
            self._reload(process)
            self._credit_all(process, MOTIVO_DEVOLUCAO)
        return self.get_process(id_processo)

    # ------------------------------------------------------------------
    # listings
    # ------------------------------------------------------------------

    def _paginate(
        self,
        query: Query,
        page: int,
        limit: int,
        status: str = STATUS_TODOS,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> Tuple[List[Process], dict]:
        if page < 1 or limit < 1:
            raise BusinessError.bad_request("page e limit devem ser maiores que zero")
        if status not in STATUS_FILTERS:
            raise BusinessError.bad_request(f"status deve ser um de: {', '.join(STATUS_FILTERS)}")

        if status == STATUS_PENDENTES:
            query = query.filter(Process.status_entrega.is_(False))
        elif status == STATUS_ENTREGUES:
            query = query.filter(Process.status_entrega.is_(True))
        if data_inicio is not None:
            query = query.filter(Process.data_agendada >= start_of_day(data_inicio))
        if data_fim is not None:
            query = query.filter(Process.data_agendada <= end_of_day(data_fim))

        total = query.count()
        ids = [
            row[0]
            for row in query.with_entities(Process.id_processo)
            .order_by(Process.created_at.desc(), Process.id_processo.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        ]
        processes = []
        if ids:
            by_id = {p.id_processo: p for p in self._hydrated().filter(Process.id_processo.in_(ids)).all()}
            processes = [by_id[i] for i in ids]
        return processes, pagination(total, page, limit)

    def get_processes_by_empresa(self, id_empresa: str, page: int = 1, limit: int = 10,
                                 status: str = STATUS_TODOS, data_inicio: Optional[date] = None,
                                 data_fim: Optional[date] = None) -> Tuple[List[Process], dict]:
        query = self.db.query(Process).filter(Process.id_empresa == id_empresa)
        return self._paginate(query, page, limit, status, data_inicio, data_fim)

    def get_processes_by_colaborador(self, id_colaborador: str, id_empresa: str, page: int = 1,
                                     limit: int = 10, status: str = STATUS_TODOS) -> Tuple[List[Process], dict]:
        exists = (
            self.db.query(Collaborator.id_colaborador)
            .filter(Collaborator.id_colaborador == id_colaborador, Collaborator.id_empresa == id_empresa)
            .first()
        )
        if not exists:
            raise BusinessError.not_found("Colaborador")
        query = self.db.query(Process).filter(
            Process.id_colaborador == id_colaborador, Process.id_empresa == id_empresa
        )
        return self._paginate(query, page, limit, status)

    def list_processes(self, page: int = 1, limit: int = 10, search: Optional[str] = None,
                       status: str = STATUS_TODOS, data_inicio: Optional[date] = None,
                       data_fim: Optional[date] = None) -> Tuple[List[Process], dict]:
        """Cross-tenant listing for administrators."""
        query = self.db.query(Process)
        if search:
            term = f"%{search.strip()}%"
            query = (
                query.join(Collaborator, Process.id_colaborador == Collaborator.id_colaborador)
                .join(Company, Process.id_empresa == Company.id_empresa)
                .filter(or_(
                    Collaborator.nome_colaborador.ilike(term),
                    Collaborator.cpf.ilike(term),
                    Company.nome_fantasia.ilike(term),
                ))
            )
        return self._paginate(query, page, limit, status, data_inicio, data_fim)
