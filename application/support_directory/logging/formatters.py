"""
One JSON object per line, for files and for Firehose alike.
"""
import json
import logging
from datetime import datetime, timezone

# Settings
from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()

CONTEXT_FIELDS = ("request_id", "request_method", "request_path", "user_id", "user_role", "app_version")
LOOKUP_FIELDS = ("lookup_user_id", "branch_name")
AUDIT_FIELDS = (
    "duration",
    "status_code",
    "size_in_bytes",
    "module_name",
    "hostname",
    "app_name",
    "header_referer",
    "timestamp",
)


def to_json(value) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


class BaseJSONFormatter(logging.Formatter):
    extra_fields: tuple = ()

    def build_entry(self, record) -> dict:
        entry = {
            "logged_at": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "environment": configs.APPLICATION_ENVIRONMENT,
            "service": configs.APP_NAME,
        }
        for field in self.extra_fields:
            entry[field] = getattr(record, field, "")
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return entry

    def format(self, record):
        return to_json(self.build_entry(record))


class AppLogsJSONFormatter(BaseJSONFormatter):
    extra_fields = CONTEXT_FIELDS + LOOKUP_FIELDS

    def build_entry(self, record) -> dict:
        entry = super().build_entry(record)
        entry["message"] = record.getMessage()
        return entry


class AuditLogsJSONFormatter(BaseJSONFormatter):
    """Request and response snapshots, serialized so the stream schema stays flat"""

    extra_fields = CONTEXT_FIELDS + AUDIT_FIELDS

    def build_entry(self, record) -> dict:
        entry = super().build_entry(record)
        for field in ("request", "response"):
            value = getattr(record, field, None)
            entry[field] = to_json(value) if value else ""
        if getattr(record, "exception", None):
            entry["exception"] = record.exception
        return entry
