"""
Logging configuration for the support directory service.
Firehose-first with a local file fallback.
"""

# Settings
from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()


class LoggingConfig:
    """Logging configuration read once from DirectoryConfigs"""

    # Core settings
    LOG_DIR = configs.LOG_DIR
    FIREHOSE_ENABLED = configs.FIREHOSE_ENABLED
    AUDIT_LOGGING_ENABLED = configs.AUDIT_LOGGING_ENABLED
    CAPTURE_RESPONSE_BODY = configs.CAPTURE_RESPONSE_BODY
    LOG_DEBUG_PRINTS = configs.LOG_DEBUG_PRINTS
    SERVICE_NAME = configs.APP_NAME

    # Stream Names
    APP_LOGS_STREAM_NAME = configs.APP_LOGS_STREAM_NAME
    AUDIT_LOGS_STREAM_NAME = configs.AUDIT_LOGS_STREAM_NAME
    AUDIT_LOGS_GET_STREAM_NAME = configs.AUDIT_LOGS_GET_STREAM_NAME
    LOG_BUFFER_TIMEOUT = configs.LOG_BUFFER_TIMEOUT

    # Buffer sizes
    APP_LOGS_CAPACITY = configs.APP_LOGS_CAPACITY
    AUDIT_LOGS_CAPACITY = configs.AUDIT_LOGS_CAPACITY

    # Firehose settings
    FIREHOSE_REGION_NAME = configs.FIREHOSE_REGION_NAME
    FIREHOSE_ACCESS_KEY_ID = configs.FIREHOSE_ACCESS_KEY_ID
    FIREHOSE_SECRET_ACCESS_KEY = configs.FIREHOSE_SECRET_ACCESS_KEY
    FIREHOSE_RETRY_COUNT = configs.FIREHOSE_RETRY_COUNT
    FIREHOSE_RETRY_DELAY = configs.FIREHOSE_RETRY_DELAY

    # Slack alerts
    SLACK_ALERTS_ENABLED = configs.SLACK_ALERTS_ENABLED
    SLACK_WEBHOOK_URL = configs.SLACK_WEBHOOK_URL

    @classmethod
    def is_valid_config(cls):
        """Only Firehose credentials are checked, and only when Firehose is on"""
        if cls.FIREHOSE_ENABLED:
            if not cls.FIREHOSE_ACCESS_KEY_ID or not cls.FIREHOSE_SECRET_ACCESS_KEY:
                return False, "Firehose credentials not configured"
        if cls.SLACK_ALERTS_ENABLED and not cls.SLACK_WEBHOOK_URL:
            return False, "SLACK_ALERTS_ENABLED is true but SLACK_WEBHOOK_URL is empty"
        return True, "Configuration is valid"
