from typing import Optional

from support_directory.dto.common import CamelModel


class OTPStartRequest(CamelModel):
    phone: Optional[str] = None
    channel: Optional[str] = None


class OTPVerifyRequest(CamelModel):
    phone: Optional[str] = None
    code: Optional[str] = None


class OTPVerifyResult(CamelModel):
    otp_token: str
    expires_in: str


class DirectoryEntry(CamelModel):
    user_id: str
    branch_name: str
    wa_link: str
