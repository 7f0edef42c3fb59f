import pytest
from pydantic import ValidationError

from support_directory.dto.accounts import ClientAccount, RootAccount, SubAccount, to_account


def row(**fields):
    values = {"id": 1, "user_id": "U1"}
    values.update(fields)
    return values


def test_rows_validate_into_their_role_variant():
    assert isinstance(to_account(row(role="root")), RootAccount)
    assert isinstance(to_account(row(role="sub", branch_wa_link="https://wa.link/x")), SubAccount)
    client = to_account(row(role="client", parent_sub_admin_id=2, branch_name="North", branch_wa_link="https://wa.link/x"))
    assert isinstance(client, ClientAccount)


def test_unknown_role_is_rejected():
    with pytest.raises(ValidationError):
        to_account(row(role="owner"))


def test_client_needs_parent_sub_admin():
    with pytest.raises(ValidationError):
        to_account(row(role="client", branch_wa_link="https://wa.link/x"))


def test_sub_admin_needs_branch_information():
    with pytest.raises(ValidationError):
        to_account(row(role="sub"))


def test_root_and_sub_cannot_have_parent():
    with pytest.raises(ValidationError):
        to_account(row(role="root", parent_sub_admin_id=3))
    with pytest.raises(ValidationError):
        to_account(row(role="sub", parent_sub_admin_id=3, branch_ref_id=1))


def test_password_hash_is_never_serialized():
    account = to_account(row(role="root", password_hash="$2b$04$secret"))
    dumped = account.model_dump(by_alias=True)
    assert "passwordHash" not in dumped
    assert "password_hash" not in dumped
    assert account.password_hash == "$2b$04$secret"
