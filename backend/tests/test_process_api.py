from epitrack.core.audit import PROCESS_CREATED, PROCESS_DELETED, PROCESS_DELIVERED, PROCESS_RETURNED
from epitrack.core.permissions import ADMIN
from epitrack.models import Log


def _payload(colaborador, *items):
    return {
        "idColaborador": colaborador.id_colaborador,
        "dataAgendada": "2025-03-10T09:00:00Z",
        "epis": [{"idEpi": epi.id_epi, "quantidade": qtd} for epi, qtd in items],
    }


def _qty(db, epi):
    db.expire_all()
    return epi.quantidade


def test_create_returns_camel_case_envelope(client, db, admin_headers, colaborador, make_epi, company):
    a = make_epi(company, quantidade=10, nome="Capacete", ca="12345")

    r = client.post("/v1/process/create", json=_payload(colaborador, (a, 5)), headers=admin_headers)

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Processo criado com sucesso"
    data = body["data"]
    assert data["statusEntrega"] is False
    assert data["dataEntrega"] is None
    assert data["idEmpresa"] == company.id_empresa
    assert data["colaborador"]["nomeColaborador"] == colaborador.nome_colaborador
    assert data["processEpis"] == [
        {"idEpi": a.id_epi, "quantidade": 5, "epi": {"idEpi": a.id_epi, "nomeEpi": "Capacete", "ca": "12345"}}
    ]
    assert _qty(db, a) == 5


def test_create_validation_errors_are_400(client, admin_headers, colaborador):
    r = client.post(
        "/v1/process/create",
        json={"idColaborador": colaborador.id_colaborador, "dataAgendada": "2025-03-10T09:00:00", "epis": []},
        headers=admin_headers,
    )
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Dados inválidos"
    assert any(e["field"] == "epis" for e in body["errors"])


def test_create_rejects_zero_quantity(client, admin_headers, colaborador, make_epi, company):
    a = make_epi(company)
    payload = _payload(colaborador, (a, 0))
    r = client.post("/v1/process/create", json=payload, headers=admin_headers)
    assert r.status_code == 400


def test_insufficient_stock_response(client, db, admin_headers, colaborador, make_epi, company):
    a = make_epi(company, quantidade=2, nome="Óculos")
    r = client.post("/v1/process/create", json=_payload(colaborador, (a, 3)), headers=admin_headers)

    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Estoque insuficiente para EPI Óculos. Disponível: 2, Solicitado: 3"
    assert body["disponivel"] == 2 and body["solicitado"] == 3
    assert _qty(db, a) == 2


def test_operador_cannot_create_or_delete(client, operador_headers, admin_headers, colaborador, make_epi, company):
    a = make_epi(company)
    r = client.post("/v1/process/create", json=_payload(colaborador, (a, 1)), headers=operador_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Sem permissão para criar processos"

    created = client.post("/v1/process/create", json=_payload(colaborador, (a, 1)), headers=admin_headers)
    id_processo = created.json()["data"]["idProcesso"]

    r = client.delete(f"/v1/process/{id_processo}", headers=operador_headers)
    assert r.status_code == 403

    # OPERADOR may still confirm the delivery
    r = client.patch(f"/v1/process/{id_processo}/confirm-delivery", headers=operador_headers)
    assert r.status_code == 200
    assert r.json()["data"]["statusEntrega"] is True


def test_gestor_cannot_delete(client, gestor_headers, colaborador, make_epi, company):
    a = make_epi(company)
    created = client.post("/v1/process/create", json=_payload(colaborador, (a, 1)), headers=gestor_headers)
    assert created.status_code == 201
    r = client.delete(f"/v1/process/{created.json()['data']['idProcesso']}", headers=gestor_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Sem permissão para excluir processos"


def test_missing_credentials(client, admin_headers):
    r = client.get("/v1/process/qualquer")
    assert r.status_code == 401
    assert r.json()["message"] == "x-api-token e Authorization são obrigatórios"

    r = client.get("/v1/process/qualquer", headers={"Authorization": admin_headers["Authorization"]})
    assert r.status_code == 401


def test_invalid_api_key_and_token(client, admin_headers):
    r = client.get("/v1/process/qualquer", headers={**admin_headers, "x-api-token": "nao-existe"})
    assert r.status_code == 403
    assert r.json()["message"] == "API Key inválida"

    r = client.get("/v1/process/qualquer", headers={**admin_headers, "Authorization": "Bearer lixo"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token expirado ou inválido"


def test_token_of_another_company_is_rejected(client, admin_headers, make_company):
    outra = make_company("Outra")
    r = client.get("/v1/process/qualquer", headers={**admin_headers, "x-api-token": outra.api_key})
    assert r.status_code == 401


def test_company_listing_is_scoped_to_caller(client, gestor_headers, colaborador, make_epi, company, make_company):
    a = make_epi(company, quantidade=50)
    for _ in range(3):
        client.post("/v1/process/create", json=_payload(colaborador, (a, 1)), headers=gestor_headers)

    r = client.get(f"/v1/process/empresa/{company.id_empresa}?status=pendentes&page=1&limit=2",
                   headers=gestor_headers)
    assert r.status_code == 200
    body = r.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}

    outra = make_company("Outra")
    r = client.get(f"/v1/process/empresa/{outra.id_empresa}", headers=gestor_headers)
    assert r.status_code == 403

    r = client.get(f"/v1/process/empresa/{company.id_empresa}?status=cancelados", headers=gestor_headers)
    assert r.status_code == 400


def test_admin_listing_requires_admin(client, admin_headers, gestor_headers):
    assert client.get("/v1/process/list", headers=gestor_headers).status_code == 403
    r = client.get("/v1/process/list", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 0


def test_other_tenant_process_is_not_found(client, gestor_headers, make_company, make_collaborator, make_epi,
                                           make_user, headers_for):
    outra = make_company("Outra")
    outro_headers = headers_for(make_user(outra, ADMIN), outra)
    colab = make_collaborator(outra)
    a = make_epi(outra)
    created = client.post("/v1/process/create", json=_payload(colab, (a, 1)), headers=outro_headers)
    id_processo = created.json()["data"]["idProcesso"]

    r = client.get(f"/v1/process/{id_processo}", headers=gestor_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Processo não encontrado"
    assert client.put(f"/v1/process/{id_processo}", json={"observacoes": "x"},
                      headers=gestor_headers).status_code == 404


def test_kiosk_confirmation_is_addressed_by_process_id_alone(client, gestor_headers, make_company,
                                                             make_collaborator, make_epi, make_user, headers_for):
    outra = make_company("Outra")
    outro_headers = headers_for(make_user(outra, ADMIN), outra)
    a = make_epi(outra)
    created = client.post("/v1/process/create", json=_payload(make_collaborator(outra), (a, 1)),
                          headers=outro_headers)
    id_processo = created.json()["data"]["idProcesso"]

    r = client.patch(f"/v1/process/{id_processo}/confirm-delivery", json={}, headers=gestor_headers)
    assert r.status_code == 200
    assert r.json()["data"]["statusEntrega"] is True
    assert r.json()["data"]["idEmpresa"] == outra.id_empresa


def test_full_lifecycle_over_http(client, db, admin_headers, colaborador, make_epi, company):
    a = make_epi(company, quantidade=10)
    b = make_epi(company, quantidade=3)
    created = client.post("/v1/process/create", json=_payload(colaborador, (a, 2)), headers=admin_headers)
    id_processo = created.json()["data"]["idProcesso"]

    r = client.put(
        f"/v1/process/{id_processo}",
        json={"epis": [{"idEpi": a.id_epi, "quantidade": 1}, {"idEpi": b.id_epi, "quantidade": 3}]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert _qty(db, a) == 9 and _qty(db, b) == 0

    r = client.patch(f"/v1/process/{id_processo}/register-return",
                     json={"dataDevolucao": "2025-03-20T10:00:00Z"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Processo ainda não foi entregue"

    r = client.patch(f"/v1/process/{id_processo}/confirm-delivery", json={}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["dataEntrega"] is not None

    r = client.patch(f"/v1/process/{id_processo}/confirm-delivery", json={}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Processo já foi entregue"

    r = client.patch(f"/v1/process/{id_processo}/register-return",
                     json={"dataDevolucao": "2025-03-20T10:00:00Z", "observacoes": "ok"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["dataDevolucao"].startswith("2025-03-20T10:00:00")
    assert _qty(db, a) == 10 and _qty(db, b) == 3

    r = client.delete(f"/v1/process/{id_processo}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Processo deletado com sucesso"}
    assert _qty(db, a) == 10 and _qty(db, b) == 3


def test_register_return_requires_date(client, admin_headers, colaborador, make_epi, company):
    a = make_epi(company)
    created = client.post("/v1/process/create", json=_payload(colaborador, (a, 1)), headers=admin_headers)
    id_processo = created.json()["data"]["idProcesso"]
    r = client.patch(f"/v1/process/{id_processo}/register-return", json={}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "dataDevolucao"


def test_termo_is_a_pdf(client, admin_headers, colaborador, make_epi, company):
    a = make_epi(company, nome="Luva <nitrílica> & cia")
    created = client.post("/v1/process/create", json=_payload(colaborador, (a, 2)), headers=admin_headers)
    id_processo = created.json()["data"]["idProcesso"]

    r = client.get(f"/v1/process/{id_processo}/termo", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert f"termo_{id_processo}.pdf" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_mutations_are_audited(client, db, admin, admin_headers, colaborador, make_epi, company):
    a = make_epi(company)
    created = client.post("/v1/process/create", json=_payload(colaborador, (a, 2)), headers=admin_headers)
    id_processo = created.json()["data"]["idProcesso"]
    client.patch(f"/v1/process/{id_processo}/confirm-delivery", headers=admin_headers)
    client.patch(f"/v1/process/{id_processo}/register-return",
                 json={"dataDevolucao": "2025-03-20T10:00:00Z"}, headers=admin_headers)
    client.delete(f"/v1/process/{id_processo}", headers=admin_headers)

    logs = db.query(Log).filter(Log.id_processo == id_processo).order_by(Log.timestamp).all()
    assert sorted(log.tipo for log in logs) == sorted(
        [PROCESS_CREATED, PROCESS_DELIVERED, PROCESS_RETURNED, PROCESS_DELETED]
    )
    assert all(log.id_user == admin.id_user and log.id_empresa == company.id_empresa for log in logs)
    created_log = next(log for log in logs if log.tipo == PROCESS_CREATED)
    assert created_log.body == {"epis": {a.id_epi: 2}}


def test_responses_carry_request_id_and_security_headers(client):
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.status_code == 200
    assert r.headers["X-Request-ID"] == "abc123"
    assert r.headers["X-Content-Type-Options"] == "nosniff"
