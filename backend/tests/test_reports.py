from datetime import datetime

import pytest

from epitrack.core.dates import utcnow
from epitrack.core.exceptions import NotFoundError
from epitrack.models import Epi, EpiMovement
from epitrack.schemas.process import ProcessCreate, ProcessItemIn, ProcessUpdate
from epitrack.services import dashboard_service, financial_report_service
from epitrack.services.process_service import ProcessService


@pytest.fixture
def movimentado(db, company, colaborador, make_epi):
    """Two EPIs with an edited process and a returned process."""
    a = make_epi(company, quantidade=20, nome="Luva", preco="10.00")
    b = make_epi(company, quantidade=20, nome="Capacete", preco="25.50")
    service = ProcessService(db)

    def create(*items):
        return service.create_process(
            ProcessCreate(
                id_colaborador=colaborador.id_colaborador,
                data_agendada=datetime(2025, 3, 10),
                epis=[ProcessItemIn(id_epi=epi.id_epi, quantidade=qtd) for epi, qtd in items],
            ),
            company.id_empresa,
        )

    p1 = create((a, 3), (b, 2))
    service.update_process(
        p1.id_processo,
        ProcessUpdate(epis=[ProcessItemIn(id_epi=a.id_epi, quantidade=1), ProcessItemIn(id_epi=b.id_epi, quantidade=2)]),
        company.id_empresa,
    )
    p2 = create((a, 2))
    service.confirm_delivery(p2.id_processo)
    service.register_return(p2.id_processo, utcnow(), id_empresa=company.id_empresa)
    return a, b


def test_annual_costs_subtract_reversals_but_not_returns(db, company, movimentado):
    a, b = movimentado
    rows = financial_report_service.annual_costs(db, company.id_empresa, utcnow().year)

    assert [(r["epiId"], r["totalGasto"], r["quantidadeEntregue"]) for r in rows] == [
        (b.id_epi, 51.0, 2),
        (a.id_epi, 30.0, 3),
    ]
    assert financial_report_service.annual_costs(db, company.id_empresa, 2001) == []


def test_annual_summary_groups_by_year(db, company, movimentado):
    a, b = movimentado
    summary = financial_report_service.annual_summary(db, company.id_empresa)
    year = str(utcnow().year)
    assert set(summary) == {year}
    assert summary[year][a.id_epi]["nomeEpi"] == "Luva"
    assert summary[year][b.id_epi]["totalGasto"] == 51.0


def test_monthly_breakdown(db, company, movimentado):
    db.query(EpiMovement).update({EpiMovement.data_movimento: datetime(2024, 5, 15, 12)})
    db.commit()

    months = financial_report_service.monthly(db, company.id_empresa, 2024)

    assert list(months)[0] == "janeiro" and len(months) == 12
    assert months["maio"] == {"totalGasto": 81.0, "quantidadeEntregue": 5, "episEntregues": 2}
    assert months["janeiro"] == {"totalGasto": 0.0, "quantidadeEntregue": 0, "episEntregues": 0}


def test_top_expensive_limits_rows(db, company, movimentado):
    a, b = movimentado
    top = financial_report_service.top_expensive(db, company.id_empresa, utcnow().year, limit=1)
    assert [r["epiId"] for r in top] == [b.id_epi]


def test_reports_for_unknown_company(db):
    with pytest.raises(NotFoundError):
        financial_report_service.annual_costs(db, "nao-existe")


def test_dashboard_stats(db, company, movimentado, make_epi):
    make_epi(company, nome="Inativo", preco="99.00")
    db.query(Epi).filter_by(nome_epi="Inativo").update({"status": False})
    db.commit()

    stats = dashboard_service.general_stats(db, company.id_empresa)
    assert stats == {
        "totalEpis": 2,
        "entregasRecentes": 1,
        "valorTotalEpis": 35.5,
        "valorMedioPorEpi": 17.75,
    }


def test_dashboard_endpoints(client, admin_headers, company, movimentado, make_company):
    r = client.get(f"/v1/dashboard/{company.id_empresa}/stats", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["totalEpis"] == 2

    r = client.get(f"/v1/dashboard/{company.id_empresa}/recent-deliveries", headers=admin_headers)
    assert len(r.json()["data"]) == 1
    assert r.json()["data"][0]["statusEntrega"] is True

    r = client.get(f"/v1/dashboard/{company.id_empresa}/low-stock", headers=admin_headers)
    assert r.status_code == 200

    outra = make_company("Outra")
    assert client.get(f"/v1/dashboard/{outra.id_empresa}/stats", headers=admin_headers).status_code == 403


def test_financial_endpoints(client, admin_headers, company, movimentado):
    year = utcnow().year
    r = client.get(f"/v1/financial-report/{company.id_empresa}/annual-costs?year={year}", headers=admin_headers)
    assert r.status_code == 200
    assert len(r.json()["data"]) == 2

    r = client.get(f"/v1/financial-report/{company.id_empresa}/monthly", headers=admin_headers)
    assert len(r.json()["data"]) == 12

    r = client.get(f"/v1/financial-report/{company.id_empresa}/top-expensive?limit=1", headers=admin_headers)
    assert len(r.json()["data"]) == 1

    r = client.get(f"/v1/financial-report/{company.id_empresa}/annual-summary", headers=admin_headers)
    assert str(year) in r.json()["data"]
