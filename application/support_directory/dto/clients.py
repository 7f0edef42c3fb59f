from datetime import datetime
from typing import Optional

from pydantic import field_validator

from support_directory.dto.common import CamelModel, clean_optional


class ClientCreateRequest(CamelModel):
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None

    @field_validator("user_id", "name", "email", "phone")
    @classmethod
    def strip_values(cls, v):
        return clean_optional(v)


class ClientUpdateRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class ParentSubAdmin(CamelModel):
    id: str
    user_id: str
    email: Optional[str] = None
    branch_name: Optional[str] = None


class ClientView(CamelModel):
    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    is_active: bool
    branch_name: Optional[str] = None
    branch_wa_link: Optional[str] = None
    parent_sub_admin: Optional[ParentSubAdmin] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account, parent=None) -> "ClientView":
        return cls(
            id=str(account.id),
            user_id=account.user_id,
            name=account.name,
            email=account.email,
            phone=account.phone,
            role=account.role,
            is_active=account.is_active,
            branch_name=account.branch_name,
            branch_wa_link=account.branch_wa_link,
            parent_sub_admin=ParentSubAdmin(
                id=str(parent.id), user_id=parent.user_id, email=parent.email, branch_name=parent.branch_name
            ) if parent else None,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=False, exclude={"parent_sub_admin"} if self.parent_sub_admin is None else None)


class ClientStats(CamelModel):
    total: int
    active: int
    inactive: int
