"""
Phone OTP verification for directory search.

Two delivery strategies exist and one is picked when the app starts:
the managed strategy hands the whole challenge to Twilio Verify, the
self-managed strategy generates codes itself, keeps them in a challenge
store and only uses the provider to deliver the message.
"""
import hashlib
import hmac
import secrets
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from support_directory.config.sentry import capture_message
from support_directory.core.constants import OTPChannels, OTPStatus
from support_directory.core.exceptions import (
    AccountInactive,
    InvalidOrExpiredCode,
    ProviderError,
    RateLimited,
    ServiceUnavailable,
    UnknownPhone,
    ValidationError,
)
from support_directory.dto.phone_validations import normalize_phone
from support_directory.integrations.twilio_otp import OTPProviderError
from support_directory.services.otp_challenge_store import ChallengeStore, OTPChallenge, build_challenge_store
from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()


def resolve_channel(channel: Optional[str]) -> str:
    resolved = (channel or configs.OTP_DEFAULT_CHANNEL or OTPChannels.DEFAULT).strip().lower()
    return resolved if resolved in OTPChannels.ALL else OTPChannels.DEFAULT


def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode()).hexdigest()


class OTPDeliveryStrategy(ABC):
    name = ""

    def __init__(self, provider):
        self.provider = provider

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    def start(self, phone: str, channel: str) -> None:
        ...

    @abstractmethod
    def check(self, phone: str, code: str) -> bool:
        ...


class ManagedOTPStrategy(OTPDeliveryStrategy):
    name = "managed"

    def is_configured(self) -> bool:
        return self.provider.verify_configured

    def start(self, phone: str, channel: str) -> None:
        self.provider.create_challenge(phone, channel)

    def check(self, phone: str, code: str) -> bool:
        try:
            result = self.provider.check_challenge(phone, code)
        except OTPProviderError as e:
            # Verify answers 404 once the challenge is gone; same outcome as a wrong code
            logger.info(f"otp_check_rejected | phone={phone} status={e.status}")
            return False
        return result.get("status") == OTPStatus.APPROVED


class SelfManagedOTPStrategy(OTPDeliveryStrategy):
    name = "self_managed"

    MESSAGE_TEMPLATE = "Your verification code is {code}. It expires in {minutes} minutes."

    def __init__(
        self,
        provider,
        store: ChallengeStore,
        expiry_minutes: Optional[int] = None,
        otp_length: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(provider)
        self.store = store
        self.expiry_minutes = expiry_minutes if expiry_minutes is not None else configs.OTP_EXPIRY_MINUTES
        self.otp_length = otp_length or configs.OTP_LENGTH
        self.clock = clock

    def is_configured(self) -> bool:
        return self.provider.messaging_configured

    def generate_otp(self) -> str:
        return "".join(secrets.choice("0123456789") for _ in range(self.otp_length))

    def start(self, phone: str, channel: str) -> None:
        code = self.generate_otp()
        challenge = OTPChallenge(code_hash=hash_otp(code), expires_at=self.clock() + self.expiry_minutes * 60)
        self.store.put(phone, challenge)

        # voice and email delivery need the managed service; text the code instead
        delivery_channel = channel if channel in (OTPChannels.SMS, OTPChannels.WHATSAPP) else OTPChannels.SMS
        body = self.MESSAGE_TEMPLATE.format(code=code, minutes=self.expiry_minutes)
        try:
            self.provider.send_message(phone, body, delivery_channel)
        except Exception:
            self.store.discard(phone, challenge)
            raise

    def check(self, phone: str, code: str) -> bool:
        challenge = self.store.take(phone)
        if challenge is None:
            return False
        if self.clock() > challenge.expires_at:
            logger.info(f"otp_expired | phone={phone}")
            return False
        return hmac.compare_digest(hash_otp(code), challenge.code_hash)


class OTPVerifier:
    def __init__(self, strategy: OTPDeliveryStrategy, token_issuer, accounts):
        self.strategy = strategy
        self.token_issuer = token_issuer
        self.accounts = accounts

    def _ensure_configured(self):
        if not self.strategy.is_configured():
            capture_message(f"otp_service_not_configured | strategy={self.strategy.name}", level="error")
            raise ServiceUnavailable("OTP service not configured")

    def start(self, phone: Optional[str], channel: Optional[str] = None) -> None:
        phone = normalize_phone(phone)
        if not phone:
            raise ValidationError("phone is required")

        account = self.accounts.find_by_phone(phone)
        if account is None:
            raise UnknownPhone("Phone number is not registered")
        if not account.is_active:
            raise AccountInactive("Account is inactive")

        self._ensure_configured()
        final_channel = resolve_channel(channel)

        try:
            self.strategy.start(phone, final_channel)
        except OTPProviderError as e:
            if e.status == 429:
                raise RateLimited("Too many OTP requests. Please try again later.") from e
            raise ProviderError(e.message or "Failed to process OTP request", e.status) from e

        logger.info(f"otp_started | phone={phone} channel={final_channel} strategy={self.strategy.name}")

    def check(self, phone: Optional[str], code: Optional[str]) -> Dict:
        phone = normalize_phone(phone)
        code = str(code or "").strip()
        if not phone or not code:
            raise ValidationError("phone and code are required")

        self._ensure_configured()

        if not self.strategy.check(phone, code):
            logger.info(f"otp_rejected | phone={phone}")
            raise InvalidOrExpiredCode("Invalid or expired OTP")

        logger.info(f"otp_approved | phone={phone}")
        return {
            "otp_token": self.token_issuer.issue_phone_credential(phone),
            "expires_in": self.token_issuer.phone_credential_lifetime,
        }


def build_otp_verifier(provider, token_issuer, accounts, store: Optional[ChallengeStore] = None) -> OTPVerifier:
    """Pick the delivery strategy once, from what the provider has configured."""
    if provider.verify_configured:
        strategy = ManagedOTPStrategy(provider)
    else:
        strategy = SelfManagedOTPStrategy(provider, store or build_challenge_store())
    logger.info(f"otp_strategy_selected | strategy={strategy.name}")
    return OTPVerifier(strategy, token_issuer, accounts)
