"""
Log handlers: JSON files under LOG_DIR by default, buffered Kinesis Firehose
batches when FIREHOSE_ENABLED.
"""
import logging
import os
import threading
import time
from logging.handlers import MemoryHandler

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from support_directory.logging.config import LoggingConfig
from support_directory.logging.formatters import AppLogsJSONFormatter, AuditLogsJSONFormatter

# PutRecordBatch accepts at most 500 records per call
FIREHOSE_BATCH_LIMIT = 500


def dbg(msg: str) -> None:
    """Handler diagnostics go to stdout; logging them would recurse."""
    if LoggingConfig.LOG_DEBUG_PRINTS:
        print(msg)


def _firehose_client():
    return boto3.client(
        "firehose",
        region_name=LoggingConfig.FIREHOSE_REGION_NAME,
        aws_access_key_id=LoggingConfig.FIREHOSE_ACCESS_KEY_ID,
        aws_secret_access_key=LoggingConfig.FIREHOSE_SECRET_ACCESS_KEY,
        config=Config(connect_timeout=10, read_timeout=30, retries={"max_attempts": 2}),
    )


class FirehoseBatchHandler(MemoryHandler):
    """
    Buffers records and ships them with PutRecordBatch once the buffer is full
    or LOG_BUFFER_TIMEOUT seconds have passed since the last shipment.
    """

    def __init__(self, stream_name: str, capacity: int, formatter: logging.Formatter, client=None):
        # never flush on level alone
        super().__init__(capacity=capacity, flushLevel=logging.CRITICAL + 1)
        self.stream_name = stream_name
        self.client = client or _firehose_client()
        self.flush_interval = LoggingConfig.LOG_BUFFER_TIMEOUT
        self.last_flush = time.monotonic()
        self.setFormatter(formatter)

    def shouldFlush(self, record):
        return super().shouldFlush(record) or time.monotonic() - self.last_flush >= self.flush_interval

    def flush(self):
        self.acquire()
        try:
            records = [{"Data": (self.format(record) + "\n").encode("utf-8")} for record in self.buffer]
            self.buffer.clear()
            self.last_flush = time.monotonic()
        finally:
            self.release()

        for start in range(0, len(records), FIREHOSE_BATCH_LIMIT):
            self.put_batch(records[start:start + FIREHOSE_BATCH_LIMIT])

    def put_batch(self, records: list) -> bool:
        attempts = max(1, LoggingConfig.FIREHOSE_RETRY_COUNT)
        for attempt in range(1, attempts + 1):
            try:
                response = self.client.put_record_batch(DeliveryStreamName=self.stream_name, Records=records)
            except (BotoCoreError, ClientError) as e:
                dbg(f"firehose_put_failed | stream={self.stream_name} attempt={attempt} error={e}")
            else:
                failed = response.get("FailedPutCount", 0)
                dbg(f"firehose_put | stream={self.stream_name} attempt={attempt} sent={len(records)} failed={failed}")
                if not failed:
                    return True
                # resend only what Firehose rejected
                results = response.get("RequestResponses") or []
                rejected = [record for record, result in zip(records, results) if result.get("ErrorCode")]
                records = rejected or records
            if attempt < attempts:
                time.sleep(LoggingConfig.FIREHOSE_RETRY_DELAY * 2 ** (attempt - 1))
        return False


_handlers: dict[str, logging.Handler] = {}
_handlers_lock = threading.Lock()


def _shared(key: str, factory) -> logging.Handler:
    with _handlers_lock:
        if key not in _handlers:
            _handlers[key] = factory()
        return _handlers[key]


def get_local_file_handler(name: str = "app") -> logging.Handler:
    def build():
        os.makedirs(LoggingConfig.LOG_DIR, exist_ok=True)
        handler = logging.FileHandler(os.path.join(LoggingConfig.LOG_DIR, f"{name}.log"), encoding="utf-8")
        handler.setFormatter(AuditLogsJSONFormatter() if name.startswith("audit") else AppLogsJSONFormatter())
        return handler

    return _shared(f"file:{name}", build)


def get_app_handler() -> logging.Handler:
    if not LoggingConfig.FIREHOSE_ENABLED:
        return get_local_file_handler("app")
    stream = LoggingConfig.APP_LOGS_STREAM_NAME or f"{LoggingConfig.SERVICE_NAME}-app-logs"
    return _shared(
        f"firehose:{stream}",
        lambda: FirehoseBatchHandler(stream, LoggingConfig.APP_LOGS_CAPACITY, AppLogsJSONFormatter()),
    )


def get_audit_handler(method: str = "") -> logging.Handler:
    if not LoggingConfig.FIREHOSE_ENABLED:
        return get_local_file_handler("audit_logs")
    # read traffic has its own stream
    if method.upper() == "GET":
        stream = LoggingConfig.AUDIT_LOGS_GET_STREAM_NAME or f"{LoggingConfig.SERVICE_NAME}-audit-get-logs"
    else:
        stream = LoggingConfig.AUDIT_LOGS_STREAM_NAME or f"{LoggingConfig.SERVICE_NAME}-audit-logs"
    return _shared(
        f"firehose:{stream}",
        lambda: FirehoseBatchHandler(stream, LoggingConfig.AUDIT_LOGS_CAPACITY, AuditLogsJSONFormatter()),
    )


def flush_handlers():
    with _handlers_lock:
        handlers = list(_handlers.values())
    for handler in handlers:
        handler.flush()
