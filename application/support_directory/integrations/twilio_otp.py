from typing import Dict, Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from support_directory.core.constants import OTPChannels
from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()


class OTPProviderError(Exception):
    """Provider call failed; status is the provider's HTTP status when it sent one"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class TwilioOTPProvider:
    """
    Twilio wrapper covering both OTP paths:
    the managed Verify v2 service and plain Programmable Messaging.
    """

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        verify_service_sid: Optional[str] = None,
        from_number: Optional[str] = None,
    ):
        self.account_sid = account_sid if account_sid is not None else configs.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else configs.TWILIO_AUTH_TOKEN
        self.verify_service_sid = verify_service_sid if verify_service_sid is not None else configs.TWILIO_VERIFY_SERVICE_SID
        self.from_number = from_number if from_number is not None else configs.TWILIO_FROM_NUMBER

        self.client = None
        if self.account_sid and self.auth_token:
            self.client = Client(self.account_sid, self.auth_token)
        else:
            logger.warning("twilio_not_configured | account_sid or auth_token missing")

    @property
    def verify_configured(self) -> bool:
        return bool(self.client and self.verify_service_sid)

    @property
    def messaging_configured(self) -> bool:
        return bool(self.client and self.from_number)

    def _raise(self, action: str, phone: str, error: Exception):
        status = getattr(error, "status", None)
        message = getattr(error, "msg", None) or str(error) or "Failed to process OTP request"
        logger.warning(f"twilio_{action}_failed | phone={phone} status={status} error={message}")
        raise OTPProviderError(message, status) from error

    def create_challenge(self, phone: str, channel: str) -> Dict:
        try:
            verification = self.client.verify.v2.services(self.verify_service_sid).verifications.create(
                to=phone,
                channel=channel,
            )
        except (TwilioRestException, TwilioException) as e:
            self._raise("create_challenge", phone, e)
        logger.info(f"twilio_challenge_created | phone={phone} channel={channel} status={verification.status}")
        return {"sid": verification.sid, "status": verification.status}

    def check_challenge(self, phone: str, code: str) -> Dict:
        try:
            check = self.client.verify.v2.services(self.verify_service_sid).verification_checks.create(
                to=phone,
                code=code,
            )
        except (TwilioRestException, TwilioException) as e:
            self._raise("check_challenge", phone, e)
        return {"status": check.status}

    def send_message(self, to: str, body: str, channel: str = OTPChannels.SMS) -> Dict:
        sender, recipient = self.from_number, to
        if channel == OTPChannels.WHATSAPP:
            sender, recipient = f"whatsapp:{sender}", f"whatsapp:{to}"
        try:
            message = self.client.messages.create(body=body, from_=sender, to=recipient)
        except (TwilioRestException, TwilioException) as e:
            self._raise("send_message", to, e)
        logger.info(f"twilio_message_sent | to={to} channel={channel} sid={message.sid}")
        return {"sid": message.sid}
