from support_directory.repository.accounts import AccountRepository
from support_directory.services.token_service import TokenIssuer

from conftest import ROOT_EMAIL, ROOT_PASSWORD, bearer, create_client_account, create_sub_admin, login


def test_protected_route_requires_bearer_token(client):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Unauthorized"}


def test_malformed_authorization_header_is_rejected(client, root_account):
    response = client.get("/auth/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_token_for_deleted_account_is_rejected(client):
    token = TokenIssuer().issue(type("Ghost", (), {"id": 999, "role": "root", "token_version": 0})())
    response = client.get("/auth/me", headers=bearer(token))
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token user"


def test_token_version_bump_invalidates_existing_tokens(client, root_account):
    headers = bearer(login(client, ROOT_EMAIL, ROOT_PASSWORD))
    assert client.get("/auth/me", headers=headers).status_code == 200

    AccountRepository().bump_token_version(root_account.id)

    response = client.get("/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Token invalidated"


def test_deactivated_account_is_forbidden(client, root_headers, sub_admin):
    AccountRepository().update_fields(int(sub_admin["id"]), is_active=False)

    response = client.get("/clients/stats", headers=sub_admin["headers"])
    assert response.status_code == 403
    assert response.json()["message"] == "Account disabled"


def test_role_gates(client, root_headers, sub_admin):
    assert client.get("/branches", headers=sub_admin["headers"]).status_code == 403
    assert client.get("/admins", headers=sub_admin["headers"]).status_code == 403
    assert client.get("/clients/stats", headers=root_headers).status_code == 403
    assert client.get("/clients", headers=root_headers).status_code == 200
    assert client.get("/analytics/realtime-stats", headers=sub_admin["headers"]).status_code == 200


def test_sub_admin_cannot_reach_another_sub_admins_client(client, root_headers, sub_admin):
    other = create_client_account(client, sub_admin["headers"])
    create_sub_admin(client, root_headers, user_id="SUB2", username="sub2", password="sub-password-2")
    intruder = bearer(login(client, "sub2", "sub-password-2"))

    response = client.get(f"/clients/{other['id']}", headers=intruder)
    assert response.status_code == 404
    assert response.json()["message"] == "Client not found or access denied"

    response = client.delete(f"/clients/{other['id']}", headers=intruder)
    assert response.status_code == 404
    assert AccountRepository().get_by_user_id("CL1").is_active is True


def test_public_routes_do_not_need_a_token(client):
    assert client.post("/auth/login", json={"identifier": "nobody", "password": "whatever1"}).status_code == 401
    assert client.get("/search", params={"userId": "CL1"}).status_code == 401


def test_responses_carry_request_id(client):
    response = client.get("/health")
    assert response.headers.get("x-request-id")
