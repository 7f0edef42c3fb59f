"""
Access tokens and verified-phone credentials, both HS256 JWTs.
"""
from datetime import timedelta
from typing import Callable, Optional

from jose import jwt, JWTError
from pydantic import BaseModel

from support_directory.core.constants import Roles, TokenPurpose
from support_directory.core.exceptions import InvalidToken
from support_directory.dto.phone_validations import normalize_phone
from support_directory.utils.datetime_helpers import utc_now
from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()


class AccessClaims(BaseModel):
    subject_id: int
    role: str
    token_version: Optional[int] = None


class TokenIssuer:
    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expires_minutes: Optional[int] = None,
        phone_secret: Optional[str] = None,
        phone_expires_minutes: Optional[int] = None,
        clock: Callable = utc_now,
    ):
        self.secret = secret if secret is not None else configs.JWT_ACCESS_SECRET
        self.algorithm = algorithm or configs.JWT_ALGORITHM
        self.expires_minutes = expires_minutes if expires_minutes is not None else configs.JWT_ACCESS_EXPIRES_MINUTES
        self.phone_secret = phone_secret if phone_secret is not None else (configs.OTP_TOKEN_SECRET or self.secret)
        self.phone_expires_minutes = (
            phone_expires_minutes if phone_expires_minutes is not None else configs.OTP_TOKEN_EXPIRES_MINUTES
        )
        self.clock = clock

    def _encode(self, claims: dict, secret: str, minutes: int) -> str:
        if not secret:
            raise RuntimeError("token secret not configured")
        now = self.clock()
        claims.update({
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=minutes)).timestamp()),
        })
        return jwt.encode(claims, secret, algorithm=self.algorithm)

    def _decode(self, token: Optional[str], secret: str) -> dict:
        if not token or not secret:
            raise InvalidToken()
        try:
            return jwt.decode(str(token), secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info(f"token_rejected | error={e}")
            raise InvalidToken() from e

    def issue(self, account) -> str:
        claims = {"sub": str(account.id), "role": account.role, "tv": account.token_version}
        return self._encode(claims, self.secret, self.expires_minutes)

    def validate(self, token: Optional[str]) -> AccessClaims:
        """Signature, expiry and payload shape only; the token version is checked against the store elsewhere."""
        payload = self._decode(token, self.secret)
        role = payload.get("role")
        token_version = payload.get("tv")
        if role not in Roles.ALL:
            raise InvalidToken()
        if token_version is not None and (isinstance(token_version, bool) or not isinstance(token_version, int)):
            raise InvalidToken()
        try:
            subject_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise InvalidToken()
        return AccessClaims(subject_id=subject_id, role=role, token_version=token_version)

    def issue_phone_credential(self, phone: str) -> str:
        claims = {"phone": normalize_phone(phone), "purpose": TokenPurpose.SEARCH_OTP}
        return self._encode(claims, self.phone_secret, self.phone_expires_minutes)

    def read_phone_credential(self, token: Optional[str]) -> str:
        payload = self._decode(token, self.phone_secret)
        phone = normalize_phone(payload.get("phone"))
        if payload.get("purpose") != TokenPurpose.SEARCH_OTP or not phone:
            raise InvalidToken()
        return phone

    @property
    def phone_credential_lifetime(self) -> str:
        return f"{self.phone_expires_minutes}m"
