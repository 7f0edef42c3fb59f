from datetime import datetime
from typing import Optional

from pydantic import Field

from support_directory.core.constants import Roles
from support_directory.dto.common import CamelModel


class LoginRequest(CamelModel):
    identifier: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class FirstChangePasswordRequest(ChangePasswordRequest):
    confirm_new_password: Optional[str] = None


class ChangeEmailRequest(CamelModel):
    new_email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class UserProfile(CamelModel):
    """Account as shown to its owner; branch fields only for sub-admins"""

    id: str
    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None
    role: str
    is_active: bool
    must_change_password: bool = False
    last_login_at: Optional[datetime] = None
    session_active: bool = True
    is_active_effective: bool = True
    branch_id: Optional[str] = Field(default=None)
    branch_name: Optional[str] = None
    branch_wa_link: Optional[str] = None

    @classmethod
    def from_account(cls, account) -> "UserProfile":
        profile = cls(
            id=str(account.id),
            user_id=account.user_id,
            email=account.email,
            username=account.username,
            name=account.name,
            role=account.role,
            is_active=account.is_active,
            must_change_password=account.must_change_password,
            last_login_at=account.last_login_at,
            is_active_effective=account.is_active,
        )
        if account.role == Roles.SUB:
            profile.branch_id = str(account.branch_ref_id) if account.branch_ref_id else None
            profile.branch_name = account.branch_name
            profile.branch_wa_link = account.branch_wa_link
        return profile

    def to_response(self) -> dict:
        data = self.model_dump(by_alias=True, mode="json")
        if self.role != Roles.SUB:
            for key in ("branchId", "branchName", "branchWaLink"):
                data.pop(key, None)
        return data


class LoginResult(CamelModel):
    access_token: str
    user: dict
    session_active: bool = True
    is_active_effective: bool = True
    require_password_change: bool = False
