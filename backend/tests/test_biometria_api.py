def _create(client, headers, colaborador, path="bio/1.dat"):
    return client.post(
        "/v1/biometria",
        json={"idColaborador": colaborador.id_colaborador, "biometriaPath": path, "certificadoPath": "cert/1.pem"},
        headers=headers,
    )


def test_at_most_two_biometrias_per_collaborator(client, admin_headers, colaborador):
    assert _create(client, admin_headers, colaborador, "bio/1.dat").status_code == 201
    assert _create(client, admin_headers, colaborador, "bio/2.dat").status_code == 201

    r = _create(client, admin_headers, colaborador, "bio/3.dat")
    assert r.status_code == 400
    assert r.json()["message"] == "Colaborador já possui o máximo de 2 biometrias cadastradas"

    r = client.get(f"/v1/biometria/colaborador/{colaborador.id_colaborador}/status", headers=admin_headers)
    assert r.json()["data"]["hasBiometria"] is True
    assert r.json()["data"]["totalBiometrias"] == 2
    assert r.json()["data"]["canAddMore"] is False


def test_status_without_biometria(client, admin_headers, colaborador):
    r = client.get(f"/v1/biometria/colaborador/{colaborador.id_colaborador}/status", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["hasBiometria"] is False
    assert r.json()["data"]["maxBiometrias"] == 2


def test_inactive_collaborator_cannot_register(client, admin_headers, company, make_collaborator):
    inativo = make_collaborator(company, status=False)
    r = _create(client, admin_headers, inativo)
    assert r.status_code == 404
    assert r.json()["message"] == "Colaborador não encontrado ou inativo"


def test_update_list_and_delete(client, admin_headers, colaborador):
    created = _create(client, admin_headers, colaborador).json()["data"]
    assert created["colaborador"]["nomeColaborador"] == colaborador.nome_colaborador

    r = client.put(f"/v1/biometria/{created['idBiometria']}", json={"biometriaPath": "bio/novo.dat"},
                   headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["biometriaPath"] == "bio/novo.dat"
    assert r.json()["data"]["certificadoPath"] == "cert/1.pem"

    assert len(client.get("/v1/biometria", headers=admin_headers).json()["data"]) == 1

    assert client.delete(f"/v1/biometria/{created['idBiometria']}", headers=admin_headers).status_code == 200
    assert client.get(f"/v1/biometria/{created['idBiometria']}", headers=admin_headers).status_code == 404


def test_biometria_of_another_company_is_not_found(client, admin_headers, make_company, make_collaborator,
                                                   make_user, headers_for):
    outra = make_company("Outra")
    outro_colab = make_collaborator(outra)
    created = _create(client, headers_for(make_user(outra), outra), outro_colab).json()["data"]

    assert client.get(f"/v1/biometria/{created['idBiometria']}", headers=admin_headers).status_code == 404
    assert _create(client, admin_headers, outro_colab).status_code == 404
