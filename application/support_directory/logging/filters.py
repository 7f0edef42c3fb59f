import logging

from support_directory.middlewares.request_context import current_request_context


class RequestContextFilter(logging.Filter):
    """Copies the current request context onto every record it sees."""

    def filter(self, record):
        for key, value in current_request_context().log_fields().items():
            # explicit `extra=` values win
            if not getattr(record, key, ""):
                setattr(record, key, value)
        return True
