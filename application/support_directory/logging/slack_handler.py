import logging

import requests

from support_directory.logging.config import LoggingConfig

# Settings
from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()


class SlackErrorHandler(logging.Handler):
    """Posts ERROR and above to the alerts webhook"""

    def __init__(self, webhook_url: str | None = None, enabled: bool | None = None):
        super().__init__(level=logging.ERROR)
        self.webhook = webhook_url if webhook_url is not None else LoggingConfig.SLACK_WEBHOOK_URL
        self.enabled = bool(self.webhook) and (LoggingConfig.SLACK_ALERTS_ENABLED if enabled is None else enabled)

    def build_text(self, record) -> str:
        env = configs.APPLICATION_ENVIRONMENT.upper()
        lines = [
            f":rotating_light: *{LoggingConfig.SERVICE_NAME}* {record.levelname} in {env}",
            f"> logger `{record.name}` at `{record.module}.{record.funcName}:{record.lineno}`",
        ]
        request_id = getattr(record, "request_id", "")
        if request_id:
            lines.append(f"> request `{getattr(record, 'request_method', '')} {getattr(record, 'request_path', '')}` id `{request_id}`")
        lines.append(f"```{record.getMessage()}```")
        return "\n".join(lines)

    def emit(self, record):
        if not self.enabled:
            return
        try:
            requests.post(self.webhook, json={"text": self.build_text(record)}, timeout=2)
        except requests.RequestException:
            self.handleError(record)


slack_handler = SlackErrorHandler()
