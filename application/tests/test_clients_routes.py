from support_directory.repository.accounts import AccountRepository

from conftest import create_client_account, create_sub_admin, bearer, login


def test_create_client_copies_sub_admin_snapshot(client, sub_admin):
    created = create_client_account(client, sub_admin["headers"])

    assert created["userId"] == "CL1"
    assert created["branchName"] == "Root Branch"
    assert created["branchWaLink"] == "https://wa.link/root"
    stored = AccountRepository().get_by_user_id("CL1")
    assert stored.parent_sub_admin_id == int(sub_admin["id"])


def test_client_user_id_is_unique_across_sub_admins(client, root_headers, sub_admin):
    create_client_account(client, sub_admin["headers"])
    create_sub_admin(client, root_headers, user_id="SUB2", username="sub2", password="sub-password-2")
    other = bearer(login(client, "sub2", "sub-password-2"))

    response = client.post("/clients/create", json={"userId": "CL1", "name": "Dup"}, headers=other)
    assert response.status_code == 409
    assert response.json()["message"] == "This client ID is already registered with another sub-admin"


def test_create_client_requires_user_id_and_name(client, sub_admin):
    response = client.post("/clients/create", json={"userId": "CL1"}, headers=sub_admin["headers"])
    assert response.status_code == 400


def test_sub_admin_lists_only_own_clients(client, root_headers, sub_admin):
    create_client_account(client, sub_admin["headers"], user_id="CL1")
    create_client_account(client, sub_admin["headers"], user_id="CL2", name="Second", phone="+912222222222")
    create_sub_admin(client, root_headers, user_id="SUB2", username="sub2", password="sub-password-2")
    other = bearer(login(client, "sub2", "sub-password-2"))
    create_client_account(client, other, user_id="CL3", phone="+913333333333")

    own = client.get("/clients", headers=sub_admin["headers"]).json()["data"]
    assert sorted(item["userId"] for item in own["items"]) == ["CL1", "CL2"]
    assert "parentSubAdmin" not in own["items"][0]

    everything = client.get("/clients", headers=root_headers).json()["data"]
    assert everything["pagination"]["total"] == 3
    assert {item["parentSubAdmin"]["userId"] for item in everything["items"]} == {"SUB1", "SUB2"}

    filtered = client.get("/clients", params={"subAdminId": sub_admin["id"]}, headers=root_headers).json()["data"]
    assert filtered["pagination"]["total"] == 2


def test_client_search(client, sub_admin):
    create_client_account(client, sub_admin["headers"], user_id="CL1", name="Alice")
    create_client_account(client, sub_admin["headers"], user_id="CL2", name="Bob", phone="+912222222222")

    data = client.get("/clients", params={"search": "ali"}, headers=sub_admin["headers"]).json()["data"]
    assert [item["userId"] for item in data["items"]] == ["CL1"]

    data = client.get("/clients", params={"search": "100%"}, headers=sub_admin["headers"]).json()["data"]
    assert data["items"] == []


def test_client_stats(client, sub_admin):
    first = create_client_account(client, sub_admin["headers"], user_id="CL1")
    create_client_account(client, sub_admin["headers"], user_id="CL2", phone="+912222222222")
    client.delete(f"/clients/{first['id']}", headers=sub_admin["headers"])

    data = client.get("/clients/stats", headers=sub_admin["headers"]).json()["data"]
    assert data == {"total": 2, "active": 1, "inactive": 1}


def test_get_update_and_deactivate_client(client, sub_admin):
    created = create_client_account(client, sub_admin["headers"])
    url = f"/clients/{created['id']}"

    assert client.get(url, headers=sub_admin["headers"]).json()["data"]["name"] == "Client One"

    updated = client.put(url, json={"name": "Renamed", "email": "Client@Example.com"}, headers=sub_admin["headers"])
    assert updated.status_code == 200
    assert updated.json()["data"]["name"] == "Renamed"
    assert updated.json()["data"]["email"] == "client@example.com"

    assert client.delete(url, headers=sub_admin["headers"]).status_code == 200
    assert AccountRepository().get_by_user_id("CL1").is_active is False


def test_reset_client_password_bumps_token_version(client, sub_admin):
    created = create_client_account(client, sub_admin["headers"])

    response = client.post(
        f"/clients/{created['id']}/reset-password", json={"newPassword": "client-pass-1"}, headers=sub_admin["headers"]
    )
    assert response.status_code == 200
    assert AccountRepository().get_by_user_id("CL1").token_version == 1


def test_unknown_client_is_not_found(client, sub_admin):
    assert client.get("/clients/999", headers=sub_admin["headers"]).status_code == 404


def test_client_phone_is_stored_without_spaces(client, sub_admin):
    created = create_client_account(client, sub_admin["headers"], phone=" +91 12345 67890 ")
    assert created["phone"] == "+911234567890"

    url = f"/clients/{created['id']}"
    updated = client.put(url, json={"phone": "+91 22222 22222"}, headers=sub_admin["headers"])
    assert updated.json()["data"]["phone"] == "+912222222222"
    assert AccountRepository().find_by_phone("+912222222222").user_id == "CL1"


def test_blank_client_fields_on_update(client, sub_admin):
    created = create_client_account(client, sub_admin["headers"])
    url = f"/clients/{created['id']}"

    cleared = client.put(url, json={"phone": "   "}, headers=sub_admin["headers"])
    assert cleared.status_code == 200
    assert AccountRepository().get_by_user_id("CL1").phone is None

    response = client.put(url, json={"name": "  "}, headers=sub_admin["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "name cannot be empty"
    assert AccountRepository().get_by_user_id("CL1").name == "Client One"
