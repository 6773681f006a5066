from __future__ import annotations

import uuid
from datetime import datetime

from conftest import registration_body


def _register(client, **overrides):
    return client.post("/auth/v1/register", json=registration_body(**overrides))


def test_register_end_to_end(api_client, repository):
    client, service = api_client

    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    datetime.fromisoformat(body["timestamp"])

    user = body["data"]["user"]
    assert user["name"] == "João"
    assert user["lastName"] == "Silva"
    assert user["email"] == "joao@email.com"
    assert user["cpf"] == "123.456.789-01"
    assert "password" not in user and "passwordHash" not in user

    stored = repository.get_by_id(user["id"])
    assert stored.email == "joao@email.com"
    assert stored.cpf == "12345678901"

    token = body["data"]["token"]
    assert service._tokens.verify(token) == "joao@email.com"  # type: ignore[attr-defined]


def test_register_accepts_iso_dates(api_client):
    client, _ = api_client
    response = _register(client, dateOfBirth="1990-05-15")
    assert response.status_code == 201


def test_register_rejects_duplicate_email_with_400(api_client):
    client, _ = api_client
    assert _register(client).status_code == 201

    response = _register(client, email="JOAO@EMAIL.COM", cpf="98765432100")

    assert response.status_code == 400
    body = response.json()
    assert body == {"success": False, "message": "Email already registered", "timestamp": body["timestamp"]}


def test_register_validation_messages(api_client):
    client, _ = api_client

    missing = client.post("/auth/v1/register", json={"lastName": "silva"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Name is required"

    short = _register(client, password="123")
    assert short.status_code == 400
    assert "between 6 and 100" in short.json()["message"]

    bad_date = _register(client, dateOfBirth="31-12-1990")
    assert bad_date.status_code == 400
    assert "dd/MM/yyyy" in bad_date.json()["message"]

    future = _register(client, dateOfBirth="01/01/2999")
    assert future.status_code == 400
    assert future.json()["message"] == "Date of birth must be in the past"


def test_login_returns_token_and_hides_which_field_failed(api_client):
    client, _ = api_client
    _register(client)

    ok = client.post("/auth/v1/login", json={"email": "JOAO@email.com", "password": "secret1"})
    assert ok.status_code == 200
    assert ok.json()["data"]["token"]

    wrong_password = client.post("/auth/v1/login", json={"email": "joao@email.com", "password": "nope123"})
    unknown = client.post("/auth/v1/login", json={"email": "ghost@email.com", "password": "secret1"})
    assert wrong_password.status_code == unknown.status_code == 401
    assert wrong_password.json()["message"] == unknown.json()["message"] == "Invalid email or password"


def test_get_update_delete_flow(api_client):
    client, _ = api_client
    account_id = _register(client).json()["data"]["user"]["id"]

    fetched = client.get(f"/users/{account_id}")
    assert fetched.status_code == 200
    assert fetched.json()["data"]["age"] >= 34

    updated = client.put(f"/users/{account_id}", json={"name": "JOÃO pedro", "lastName": None})
    assert updated.status_code == 200
    assert updated.json()["data"]["name"] == "João Pedro"
    assert updated.json()["data"]["lastName"] == "Silva"

    deleted = client.delete(f"/users/{account_id}")
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "User deleted successfully"
    assert "data" not in deleted.json()

    assert client.get(f"/users/{account_id}").status_code == 404
    assert client.delete(f"/users/{account_id}").status_code == 404


def test_update_email_conflicts_return_409(api_client):
    client, _ = api_client
    first = _register(client).json()["data"]["user"]["id"]
    _register(client, email="maria@email.com", cpf="98765432100")

    same = client.put(f"/users/{first}", json={"email": "Joao@EMAIL.com"})
    assert same.status_code == 409
    assert same.json()["message"] == "New email must be different from current email"

    taken = client.put(f"/users/{first}", json={"email": "maria@email.com"})
    assert taken.status_code == 409

    malformed = client.put(f"/users/{first}", json={"email": "maria@"})
    assert malformed.status_code == 400


def test_unknown_and_malformed_ids(api_client):
    client, _ = api_client
    assert client.get(f"/users/{uuid.uuid4()}").status_code == 404
    malformed = client.get("/users/not-a-uuid")
    assert malformed.status_code == 400
    assert malformed.json()["success"] is False


def test_lookup_by_email_and_cpf_query(api_client):
    client, _ = api_client
    _register(client)

    by_email = client.get("/users", params={"email": " JOAO@email.com"})
    assert by_email.status_code == 200
    assert by_email.json()["data"]["email"] == "joao@email.com"

    by_cpf = client.get("/users", params={"cpf": "12345678901"})
    assert by_cpf.status_code == 200

    assert client.get("/users/cpf", params={"cpf": "123.456.789-01"}).status_code == 400
    assert client.get("/users/cpf", params={"cpf": "00000000000"}).status_code == 404
    assert client.get("/users/email", params={"email": "bad"}).status_code == 400
    assert client.get("/users/email", params={"email": "ghost@email.com"}).status_code == 404


def test_listing_normalizes_bad_parameters(api_client):
    client, _ = api_client
    _register(client)
    _register(client, name="ana", email="ana@email.com", cpf="98765432100")

    response = client.get(
        "/users", params={"page": -1, "size": 0, "sortBy": "", "sortDirection": "invalid"}
    )

    assert response.status_code == 200
    body = response.json()
    assert [u["name"] for u in body["content"]] == ["Ana", "João"]
    assert body["pagination"] == {
        "currentPage": 0,
        "pageSize": 10,
        "totalElements": 2,
        "totalPages": 1,
        "isFirst": True,
        "isLast": True,
        "hasNext": False,
        "hasPrevious": False,
    }


def test_listing_pages_and_sorts_descending(api_client):
    client, _ = api_client
    _register(client)
    _register(client, name="ana", email="ana@email.com", cpf="98765432100")
    _register(client, name="bia", email="bia@email.com", cpf="11122233344")

    response = client.get("/users", params={"page": 1, "size": 2, "sortDirection": "DESC"})

    body = response.json()
    assert [u["name"] for u in body["content"]] == ["Ana"]
    assert body["pagination"]["totalPages"] == 2
    assert body["pagination"]["hasPrevious"] is True
    assert body["pagination"]["isLast"] is True


def test_empty_listing_is_successful(api_client):
    client, _ = api_client
    response = client.get("/users")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["content"] == []
    assert body["message"] == "No users found"


def test_search_endpoints(api_client):
    client, _ = api_client
    _register(client)
    _register(client, name="maria", lastName="souza", email="m@email.com", cpf="98765432100")

    found = client.get("/users/search", params={"q": "silv"})
    assert found.status_code == 200
    assert found.json()["message"] == "Found 1 users matching 'silv'"

    by_last = client.get("/users/search/lastname", params={"lastName": "SOUZA"})
    assert [u["lastName"] for u in by_last.json()["content"]] == ["Souza"]

    by_full = client.get("/users/search/fullname", params={"name": "jo", "lastName": "sil"})
    assert len(by_full.json()["content"]) == 1

    none = client.get("/users/search/name", params={"name": "zzz"})
    assert none.status_code == 200
    assert none.json()["content"] == []

    blank = client.get("/users/search", params={"q": "  "})
    assert blank.status_code == 400
    assert blank.json()["message"] == "Search term is required"


def test_user_routes_are_public_even_with_a_bad_token(api_client):
    client, _ = api_client
    account_id = _register(client).json()["data"]["user"]["id"]
    response = client.get(f"/users/{account_id}", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 200


def test_me_requires_a_valid_bearer_token(api_client):
    client, _ = api_client
    token = _register(client).json()["data"]["token"]

    anonymous = client.get("/me")
    assert anonymous.status_code == 401
    assert anonymous.json()["message"] == "Authentication required"

    forged = client.get("/me", headers={"Authorization": "Bearer forged"})
    assert forged.status_code == 401

    wrong_scheme = client.get("/me", headers={"Authorization": f"Token {token}"})
    assert wrong_scheme.status_code == 401

    authed = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert authed.status_code == 200
    assert authed.json()["data"]["email"] == "joao@email.com"


def test_token_for_deleted_account_is_treated_as_anonymous(api_client):
    client, _ = api_client
    body = _register(client).json()["data"]
    client.delete(f"/users/{body['user']['id']}")

    response = client.get("/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert response.status_code == 401


def test_unknown_route_uses_envelope(api_client):
    client, _ = api_client
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json()["success"] is False
