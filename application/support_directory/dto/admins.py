from datetime import datetime
from typing import Optional

from pydantic import field_validator

from support_directory.dto.common import CamelModel, clean_optional


class SubAdminCreateRequest(CamelModel):
    user_id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    branch_id: Optional[str] = None
    wa_link: Optional[str] = None
    is_active: bool = True
    must_change_password: bool = False

    @field_validator("user_id", "username", "email", "name", "phone", "branch_id", "wa_link")
    @classmethod
    def strip_values(cls, v):
        return clean_optional(v)


class SubAdminUpdateRequest(CamelModel):
    is_active: Optional[bool] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    branch_id: Optional[str] = None
    wa_link: Optional[str] = None

    @field_validator("name", "phone", "branch_id", "wa_link")
    @classmethod
    def strip_values(cls, v):
        return clean_optional(v)


class PasswordResetByAdminRequest(CamelModel):
    new_password: Optional[str] = None


class BranchSummary(CamelModel):
    id: str
    branch_id: str
    branch_name: str


class BranchSnapshot(CamelModel):
    name: Optional[str] = None
    wa_link: Optional[str] = None


class SubAdminView(CamelModel):
    id: str
    user_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    is_active: bool
    must_change_password: bool = False
    created_by: Optional[str] = None
    branch: Optional[BranchSummary] = None
    branch_snapshot: BranchSnapshot
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account, branch=None) -> "SubAdminView":
        return cls(
            id=str(account.id),
            user_id=account.user_id,
            username=account.username,
            email=account.email,
            name=account.name,
            phone=account.phone,
            role=account.role,
            is_active=account.is_active,
            must_change_password=account.must_change_password,
            created_by=str(account.created_by) if account.created_by else None,
            branch=BranchSummary(id=str(branch.id), branch_id=branch.branch_id, branch_name=branch.branch_name) if branch else None,
            branch_snapshot=BranchSnapshot(name=account.branch_name, wa_link=account.branch_wa_link),
            created_at=account.created_at,
            updated_at=account.updated_at,
        )
