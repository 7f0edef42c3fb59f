from support_directory.repository.accounts import AccountRepository
from support_directory.services.auth_service import hash_reset_token

from conftest import ROOT_EMAIL, ROOT_PASSWORD, bearer, login


def test_login_with_email_returns_token_and_profile(client, root_account):
    response = client.post("/auth/login", json={"email": ROOT_EMAIL, "password": ROOT_PASSWORD})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["accessToken"]
    assert data["user"]["email"] == ROOT_EMAIL
    assert data["user"]["role"] == "root"
    assert "branchName" not in data["user"]
    assert AccountRepository().get_by_id(root_account.id).last_login_at is not None


def test_login_with_username_is_case_insensitive(client, root_account):
    response = client.post("/auth/login", json={"identifier": "ROOT", "password": ROOT_PASSWORD})
    assert response.status_code == 200


def test_wrong_password_and_unknown_user_look_the_same(client, root_account):
    wrong_password = client.post("/auth/login", json={"identifier": ROOT_EMAIL, "password": "nope-nope-nope"})
    unknown_user = client.post("/auth/login", json={"identifier": "ghost@example.com", "password": "nope-nope-nope"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {"success": False, "message": "Invalid credentials"}


def test_login_requires_identifier_and_password(client):
    response = client.post("/auth/login", json={"identifier": "root"})
    assert response.status_code == 400


def test_inactive_account_cannot_login(client, root_account):
    AccountRepository().update_fields(root_account.id, is_active=False)
    response = client.post("/auth/login", json={"identifier": ROOT_EMAIL, "password": ROOT_PASSWORD})
    assert response.status_code == 403


def test_sub_admin_must_login_with_username(client, root_headers, branch):
    client.post(
        "/admins",
        json={"userId": "SUB1", "username": "sub1", "email": "sub1@example.com", "password": "sub-password-1", "branchId": "ROOT-BR"},
        headers=root_headers,
    )

    by_email = client.post("/auth/login", json={"identifier": "sub1@example.com", "password": "sub-password-1"})
    assert by_email.status_code == 400

    by_username = client.post("/auth/login", json={"identifier": "sub1", "password": "sub-password-1"})
    assert by_username.status_code == 200
    assert by_username.json()["data"]["user"]["branchName"] == "Root Branch"


def test_me_returns_profile(client, root_headers):
    response = client.get("/auth/me", headers=root_headers)
    assert response.status_code == 200
    assert response.json()["data"]["userId"] == "ROOT-ADMIN"


def test_logout_invalidates_token(client, root_account, root_headers):
    assert client.post("/auth/logout", headers=root_headers).status_code == 200

    assert client.get("/auth/me", headers=root_headers).status_code == 401
    stored = AccountRepository().get_by_id(root_account.id)
    assert stored.token_version == 1
    assert stored.last_logout_at is not None


def test_change_password_invalidates_sessions(client, root_headers):
    response = client.post(
        "/auth/change-password",
        json={"currentPassword": ROOT_PASSWORD, "newPassword": "brand-new-password"},
        headers=root_headers,
    )
    assert response.status_code == 200
    assert client.get("/auth/me", headers=root_headers).status_code == 401
    login(client, ROOT_EMAIL, "brand-new-password")


def test_change_password_checks_current_password(client, root_headers):
    response = client.post(
        "/auth/change-password",
        json={"currentPassword": "not-my-password", "newPassword": "brand-new-password"},
        headers=root_headers,
    )
    assert response.status_code == 401


def test_change_password_is_root_only(client, sub_admin):
    response = client.post(
        "/auth/change-password",
        json={"currentPassword": "sub-password-1", "newPassword": "brand-new-password"},
        headers=sub_admin["headers"],
    )
    assert response.status_code == 403


def test_first_change_password_clears_flag(client, root_headers, branch):
    client.post(
        "/admins",
        json={"userId": "SUB9", "username": "sub9", "password": "temp-password-1", "branchId": "ROOT-BR", "mustChangePassword": True},
        headers=root_headers,
    )
    login_response = client.post("/auth/login", json={"identifier": "sub9", "password": "temp-password-1"})
    assert login_response.json()["data"]["requirePasswordChange"] is True
    headers = bearer(login_response.json()["data"]["accessToken"])

    mismatch = client.post(
        "/auth/first-change-password",
        json={"currentPassword": "temp-password-1", "newPassword": "final-password-1", "confirmNewPassword": "other-password"},
        headers=headers,
    )
    assert mismatch.status_code == 400

    response = client.post(
        "/auth/first-change-password",
        json={"currentPassword": "temp-password-1", "newPassword": "final-password-1", "confirmNewPassword": "final-password-1"},
        headers=headers,
    )
    assert response.status_code == 200
    stored = AccountRepository().get_by_user_id("SUB9")
    assert stored.must_change_password is False
    assert stored.token_version == 1


def test_change_email_conflict(client, root_headers, branch):
    client.post(
        "/admins",
        json={"userId": "SUB1", "username": "sub1", "email": "taken@example.com", "password": "sub-password-1", "branchId": "ROOT-BR"},
        headers=root_headers,
    )
    response = client.post(
        "/auth/change-email",
        json={"newEmail": "Taken@Example.com", "password": ROOT_PASSWORD},
        headers=root_headers,
    )
    assert response.status_code == 409

    response = client.post(
        "/auth/change-email",
        json={"newEmail": "New-Root@Example.com", "password": ROOT_PASSWORD},
        headers=root_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "new-root@example.com"


def test_forgot_password_does_not_reveal_unknown_emails(client, root_account, email_sender):
    known = client.post("/auth/forgot-password", json={"email": ROOT_EMAIL})
    unknown = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["message"] == unknown.json()["message"]
    assert [mail["address"] for mail in email_sender.sent] == [ROOT_EMAIL]


def test_reset_token_is_single_use_and_bumps_version_once(client, root_account, email_sender):
    client.post("/auth/forgot-password", json={"email": ROOT_EMAIL})
    token = email_sender.sent[-1]["token"]
    assert AccountRepository().get_by_id(root_account.id).reset_password_token == hash_reset_token(token)

    first = client.post("/auth/reset-password", json={"token": token, "newPassword": "reset-password-1"})
    second = client.post("/auth/reset-password", json={"token": token, "newPassword": "reset-password-2"})

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["message"] == "Invalid or expired reset token"
    assert AccountRepository().get_by_id(root_account.id).token_version == 1
    login(client, ROOT_EMAIL, "reset-password-1")


def test_reset_password_enforces_minimum_length(client, root_account, email_sender):
    client.post("/auth/forgot-password", json={"email": ROOT_EMAIL})
    token = email_sender.sent[-1]["token"]

    response = client.post("/auth/reset-password", json={"token": token, "newPassword": "short"})
    assert response.status_code == 400
    assert AccountRepository().get_by_id(root_account.id).token_version == 0


def test_failed_reset_email_clears_token(client, root_account, email_sender):
    email_sender.succeed = False

    response = client.post("/auth/forgot-password", json={"email": ROOT_EMAIL})

    assert response.status_code == 500
    assert AccountRepository().get_by_id(root_account.id).reset_password_token is None
