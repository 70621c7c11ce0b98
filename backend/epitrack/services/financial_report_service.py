"""
Financial aggregation over stock movements.

Spent value of an EPI = what left stock (saida) minus what came back as a
reversal (estorno, when a process was edited or deleted). Returns
(devolucao) do not reduce spending: the item was used.
"""
from collections import OrderedDict, defaultdict
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from epitrack.core.dates import year_bounds
from epitrack.models.movement import ENTRADA, MOTIVO_ESTORNO, SAIDA, EpiMovement
from epitrack.services.company_service import get_company

MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def _signed_movements(db: Session, id_empresa: str, year: Optional[int] = None):
    """Yield (movement, sign) for every movement that affects spending."""
    get_company(db, id_empresa)
    query = (
        db.query(EpiMovement)
        .options(joinedload(EpiMovement.epi))
        .filter(EpiMovement.id_empresa == id_empresa)
    )
    if year:
        inicio, fim = year_bounds(year)
        query = query.filter(EpiMovement.data_movimento >= inicio, EpiMovement.data_movimento <= fim)
    for mov in query.all():
        if mov.tipo_movimento == SAIDA:
            yield mov, 1
        elif mov.tipo_movimento == ENTRADA and mov.motivo == MOTIVO_ESTORNO:
            yield mov, -1


def _value(mov: EpiMovement) -> Decimal:
    return Decimal(mov.valor_unitario or 0) * mov.quantidade


def annual_costs(db: Session, id_empresa: str, year: Optional[int] = None) -> List[dict]:
    grouped: Dict[tuple, dict] = {}
    for mov, sign in _signed_movements(db, id_empresa, year):
        ano = mov.data_movimento.year
        row = grouped.setdefault((mov.id_epi, ano), {
            "epiId": mov.id_epi,
            "nomeEpi": mov.epi.nome_epi,
            "ca": mov.epi.ca,
            "ano": ano,
            "totalGasto": Decimal("0"),
            "quantidadeEntregue": 0,
        })
        row["totalGasto"] += sign * _value(mov)
        row["quantidadeEntregue"] += sign * mov.quantidade

    rows = sorted(grouped.values(), key=lambda r: (-r["ano"], -r["totalGasto"]))
    for row in rows:
        row["totalGasto"] = float(row["totalGasto"])
    return rows


def annual_summary(db: Session, id_empresa: str) -> Dict[str, Dict[str, dict]]:
    result: Dict[str, Dict[str, dict]] = {}
    for row in annual_costs(db, id_empresa):
        result.setdefault(str(row["ano"]), {})[row["epiId"]] = {
            "nomeEpi": row["nomeEpi"],
            "ca": row["ca"],
            "totalGasto": row["totalGasto"],
            "quantidadeEntregue": row["quantidadeEntregue"],
        }
    return result


def monthly(db: Session, id_empresa: str, year: int) -> "OrderedDict[str, dict]":
    result = OrderedDict(
        (mes, {"totalGasto": Decimal("0"), "quantidadeEntregue": 0, "episEntregues": 0}) for mes in MESES
    )
    epis_por_mes = defaultdict(set)
    for mov, sign in _signed_movements(db, id_empresa, year):
        mes = MESES[mov.data_movimento.month - 1]
        result[mes]["totalGasto"] += sign * _value(mov)
        result[mes]["quantidadeEntregue"] += sign * mov.quantidade
        if sign > 0:
            epis_por_mes[mes].add(mov.id_epi)
    for mes, data in result.items():
        data["totalGasto"] = float(data["totalGasto"])
        data["episEntregues"] = len(epis_por_mes[mes])
    return result


def top_expensive(db: Session, id_empresa: str, year: int, limit: int = 5) -> List[dict]:
    return [row for row in annual_costs(db, id_empresa, year) if row["ano"] == year][:limit]
