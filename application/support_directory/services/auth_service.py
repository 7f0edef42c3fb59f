"""
Admin authentication: login, logout, password and email changes, and the
root password-reset flow.
"""
import hashlib
import secrets
from typing import Optional

from support_directory.core.constants import Roles
from support_directory.core.exceptions import (
    Conflict,
    Forbidden,
    InternalError,
    NotFound,
    Unauthorized,
    ValidationError,
)
from support_directory.dto.auth import LoginResult, UserProfile
from support_directory.repository.accounts import AccountRepository
from support_directory.services.token_service import TokenIssuer
from support_directory.utils.datetime_helpers import minutes_from_now, utc_now
from support_directory.utils.passwords import hash_password, verify_password
from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()

FORGOT_PASSWORD_MESSAGE = "If this email is registered, you will receive a password reset link"


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    def __init__(
        self,
        accounts: Optional[AccountRepository] = None,
        token_issuer: Optional[TokenIssuer] = None,
        email_sender=None,
    ):
        self.accounts = accounts or AccountRepository()
        self.token_issuer = token_issuer or TokenIssuer()
        self.email_sender = email_sender

    def _require_account(self, account_id: int):
        account = self.accounts.get_by_id(account_id)
        if account is None:
            raise NotFound("User not found")
        return account

    def login(self, identifier: Optional[str], password: Optional[str]) -> LoginResult:
        raw_identifier = (identifier or "").strip()
        if not raw_identifier or not password:
            raise ValidationError("Username/email and password are required")

        uses_email = "@" in raw_identifier
        account = self.accounts.get_by_username(raw_identifier)
        if account is None and uses_email:
            account = self.accounts.get_by_email(raw_identifier)

        if account is None or not verify_password(password, account.password_hash):
            logger.info(f"login_failed | identifier={raw_identifier.lower()}")
            raise Unauthorized("Invalid credentials")
        if not account.is_active:
            raise Forbidden("Account disabled")
        if account.role == Roles.SUB and uses_email:
            raise ValidationError("Sub-admins must login with username")

        self.accounts.update_fields(account.id, last_login_at=utc_now())
        account = account.model_copy(update={"last_login_at": utc_now()})

        logger.info(f"login_success | id={account.id} role={account.role}")
        return LoginResult(
            access_token=self.token_issuer.issue(account),
            user=UserProfile.from_account(account).to_response(),
            is_active_effective=account.is_active,
            require_password_change=account.must_change_password,
        )

    def me(self, account_id: int) -> dict:
        return UserProfile.from_account(self._require_account(account_id)).to_response()

    def logout(self, account_id: int) -> None:
        self.accounts.bump_token_version(account_id, last_logout_at=utc_now())
        logger.info(f"logout | id={account_id}")

    def change_password(self, account_id: int, current_password: Optional[str], new_password: Optional[str]) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required")
        account = self._require_account(account_id)
        if account.role != Roles.ROOT:
            raise Forbidden("Root access required")
        if not verify_password(current_password, account.password_hash):
            raise Unauthorized("Invalid current password")
        self._check_length(new_password)

        self.accounts.bump_token_version(account.id, password_hash=hash_password(new_password))
        logger.info(f"password_changed | id={account.id}")

    def first_time_change_password(
        self,
        account_id: int,
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_new_password: Optional[str],
    ) -> None:
        if not current_password or not new_password or not confirm_new_password:
            raise ValidationError("Current password, new password and confirm new password are required")
        if new_password != confirm_new_password:
            raise ValidationError("New password and confirm password do not match")

        account = self._require_account(account_id)
        if not account.must_change_password:
            raise ValidationError("Password change is not required")
        if not verify_password(current_password, account.password_hash):
            raise Unauthorized("Invalid current password")
        self._check_length(new_password)

        self.accounts.bump_token_version(
            account.id,
            password_hash=hash_password(new_password),
            must_change_password=False,
        )
        logger.info(f"first_password_changed | id={account.id}")

    def change_email(self, account_id: int, new_email: Optional[str], password: Optional[str]) -> str:
        if not new_email or not password:
            raise ValidationError("New email and password are required")
        account = self._require_account(account_id)
        if account.role != Roles.ROOT:
            raise Forbidden("Root access required")
        if not verify_password(password, account.password_hash):
            raise Unauthorized("Invalid password")

        normalized = new_email.strip().lower()
        if self.accounts.email_taken(normalized, exclude_id=account.id):
            raise Conflict("Email already in use")

        self.accounts.update_fields(account.id, email=normalized)
        logger.info(f"email_changed | id={account.id}")
        return normalized

    def forgot_password(self, email: Optional[str]) -> str:
        if not email or not email.strip():
            raise ValidationError("Email is required")

        account = self.accounts.get_by_email(email, role=Roles.ROOT)
        # unknown and disabled accounts get the same answer
        if account is None or not account.is_active:
            logger.info(f"forgot_password_ignored | found={account is not None}")
            return FORGOT_PASSWORD_MESSAGE

        reset_token = secrets.token_hex(32)
        self.accounts.set_reset_token(
            account.id,
            hash_reset_token(reset_token),
            minutes_from_now(configs.PASSWORD_RESET_EXPIRY_MINUTES),
        )

        sent = bool(self.email_sender) and self.email_sender.send_password_reset_email(
            account.email, reset_token, account.name or "Admin"
        )
        if not sent:
            # an unsent token cannot be redeemed by its owner; drop it
            self.accounts.set_reset_token(account.id, None, None)
            logger.error(f"reset_email_failed | id={account.id}")
            raise InternalError("Failed to send reset email")

        logger.info(f"reset_email_sent | id={account.id}")
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, token: Optional[str], new_password: Optional[str]) -> None:
        if not token or not new_password:
            raise ValidationError("Token and new password are required")
        self._check_length(new_password)

        if not self.accounts.consume_reset_token(hash_reset_token(token.strip()), hash_password(new_password)):
            raise ValidationError("Invalid or expired reset token")

    @staticmethod
    def _check_length(password: str):
        if len(password) < configs.PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {configs.PASSWORD_MIN_LENGTH} characters")
