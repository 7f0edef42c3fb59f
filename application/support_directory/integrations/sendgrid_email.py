from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()

RESET_EMAIL_SUBJECT = "Password Reset Request"

RESET_EMAIL_TEMPLATE = """
<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
  <h2>Password Reset Request</h2>
  <p>Hello {name},</p>
  <p>We received a request to reset your password. Use the link below to choose a new one.
  The link is valid for {expiry_minutes} minutes.</p>
  <p><a href="{link}" style="display: inline-block; padding: 12px 30px; background-color: #4CAF50;
  color: white; text-decoration: none; border-radius: 5px;">Reset Password</a></p>
  <p>If you did not request this, you can ignore this email.</p>
</div>
"""


class SendGridEmailSender:
    """Password reset emails through SendGrid"""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None, frontend_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else configs.SENDGRID_API_KEY
        self.from_email = from_email if from_email is not None else configs.MAIL_FROM_EMAIL
        self.frontend_url = (frontend_url if frontend_url is not None else configs.FRONTEND_URL).rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    def reset_link(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={token}"

    def send_password_reset_email(self, address: str, token: str, display_name: str = "Admin") -> bool:
        if not self.configured:
            logger.warning(f"sendgrid_not_configured | to={address}")
            return False

        message = Mail(
            from_email=self.from_email,
            to_emails=address,
            subject=RESET_EMAIL_SUBJECT,
            html_content=RESET_EMAIL_TEMPLATE.format(
                name=display_name,
                link=self.reset_link(token),
                expiry_minutes=configs.PASSWORD_RESET_EXPIRY_MINUTES,
            ),
        )
        try:
            response = SendGridAPIClient(self.api_key).send(message)
        except Exception as e:
            logger.error(f"sendgrid_send_failed | to={address} error={e}")
            return False

        sent = 200 <= response.status_code < 300
        logger.info(f"sendgrid_reset_email | to={address} status_code={response.status_code} sent={sent}")
        return sent
