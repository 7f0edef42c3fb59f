"""
Role-discriminated account variants.

Rows loaded from the accounts table are validated into exactly one of
RootAccount, SubAccount or ClientAccount; a row that breaks the shape rules
of its role fails at construction instead of deep inside a request.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter, model_validator

from support_directory.core.constants import Roles
from support_directory.dto.common import CamelModel


class AccountBase(CamelModel):
    id: int
    user_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    password_hash: Optional[str] = Field(default=None, exclude=True, repr=False)
    token_version: int = 0
    is_active: bool = True
    must_change_password: bool = False
    branch_ref_id: Optional[int] = None
    branch_name: Optional[str] = None
    branch_wa_link: Optional[str] = None
    parent_sub_admin_id: Optional[int] = None
    created_by: Optional[int] = None
    reset_password_token: Optional[str] = Field(default=None, exclude=True, repr=False)
    reset_password_expires: Optional[datetime] = Field(default=None, exclude=True, repr=False)
    last_login_at: Optional[datetime] = None
    last_logout_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_branch(self) -> bool:
        return bool(self.branch_ref_id or self.branch_wa_link or self.branch_name)

    def _forbid_parent(self):
        if self.parent_sub_admin_id is not None:
            raise ValueError(f"{self.role} accounts cannot have a parent sub-admin")

    def _require_branch(self):
        if not self.has_branch:
            raise ValueError(f"{self.role} accounts need a branch reference or a branch snapshot")


class RootAccount(AccountBase):
    role: Literal["root"] = Roles.ROOT

    @model_validator(mode="after")
    def check_shape(self):
        self._forbid_parent()
        return self


class SubAccount(AccountBase):
    role: Literal["sub"] = Roles.SUB

    @model_validator(mode="after")
    def check_shape(self):
        self._forbid_parent()
        self._require_branch()
        return self


class ClientAccount(AccountBase):
    role: Literal["client"] = Roles.CLIENT

    @model_validator(mode="after")
    def check_shape(self):
        if self.parent_sub_admin_id is None:
            raise ValueError("client accounts need a parent sub-admin")
        self._require_branch()
        return self


Account = Annotated[Union[RootAccount, SubAccount, ClientAccount], Field(discriminator="role")]

_account_adapter = TypeAdapter(Account)


def to_account(row) -> Account:
    """Build the variant for an ORM row or a plain mapping."""
    if not isinstance(row, dict):
        row = {column.name: getattr(row, column.name) for column in row.__table__.columns}
    return _account_adapter.validate_python(row)
