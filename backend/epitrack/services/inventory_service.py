"""
Stock debit/credit for EPIs. Used by the process engine.

Callers own the transaction: these helpers never commit.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from epitrack.core.exceptions import InsufficientStockError
from epitrack.models.epi import Epi
from epitrack.models.movement import (
    ENTRADA, MOTIVO_ENTREGA, SAIDA, EpiMovement,
)

logger = logging.getLogger(__name__)


def _movement(epi: Epi, tipo: str, motivo: str, quantidade: int, id_processo: Optional[str]) -> EpiMovement:
    return EpiMovement(
        id_empresa=epi.id_empresa,
        id_epi=epi.id_epi,
        id_processo=id_processo,
        tipo_movimento=tipo,
        motivo=motivo,
        quantidade=quantidade,
        valor_unitario=epi.preco if epi.preco is not None else Decimal("0"),
    )


def current_quantity(db: Session, id_epi: str) -> int:
    return db.query(Epi.quantidade).filter(Epi.id_epi == id_epi).scalar() or 0


def debit(
    db: Session,
    epi: Epi,
    quantidade: int,
    id_processo: Optional[str] = None,
    solicitado: Optional[int] = None,
    restored: int = 0,
) -> None:
    """
    Take `quantidade` units out of stock.

    Conditional decrement: the row only changes if enough units remain at
    the moment the UPDATE runs, so two concurrent requests can never drive
    the counter below zero. `solicitado`/`restored` only shape the error
    message when the caller is reconciling an existing reservation.
    """
    rows = (
        db.query(Epi)
        .filter(Epi.id_epi == epi.id_epi, Epi.quantidade >= quantidade)
        .update({Epi.quantidade: Epi.quantidade - quantidade}, synchronize_session=False)
    )
    if rows == 0:
        disponivel = current_quantity(db, epi.id_epi) + restored
        logger.info(f"Stock debit rejected for EPI {epi.id_epi}: {quantidade} requested")
        raise InsufficientStockError(
            epi.nome_epi, disponivel, solicitado if solicitado is not None else quantidade, epi.id_epi
        )
    db.expire(epi, ["quantidade"])
    db.add(_movement(epi, SAIDA, MOTIVO_ENTREGA, quantidade, id_processo))


def credit(db: Session, epi: Epi, quantidade: int, motivo: str, id_processo: Optional[str] = None) -> None:
    """Put `quantidade` units back (motivo: devolucao on return, estorno on reversal)."""
    db.query(Epi).filter(Epi.id_epi == epi.id_epi).update(
        {Epi.quantidade: Epi.quantidade + quantidade}, synchronize_session=False
    )
    db.expire(epi, ["quantidade"])
    db.add(_movement(epi, ENTRADA, motivo, quantidade, id_processo))
