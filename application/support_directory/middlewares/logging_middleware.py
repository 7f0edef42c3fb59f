"""
Request auditing on top of Starlette's BaseHTTPMiddleware.

Every request gets a fresh RequestContext and an id (echoed back as
`x-request-id`). When AUDIT_LOGGING_ENABLED, a masked snapshot of the
request and the response status is written to the audit stream.
"""
import json
import socket
import time
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from support_directory.logging.utils import get_app_logger, init_audit_logger
from support_directory.logging.config import LoggingConfig
from support_directory.middlewares.request_context import (
    RequestContext,
    create_request_id,
    request_context,
    set_request_context,
    clear_request_context,
)

REQUEST_ID_HEADER = 'x-request-id'
MASKED_HEADERS = {'authorization', 'x-otp-token', 'cookie'}
MASKED_FIELDS = ('password', 'token', 'otp', 'code')
MASK = '****'
MAX_RAW_BODY = 1000


def mask_headers(headers) -> dict:
    return {k: (MASK if k.lower() in MASKED_HEADERS else v) for k, v in headers.items()}


def mask_fields(data):
    """Replace credential-like values in a (possibly nested) JSON body"""
    if isinstance(data, dict):
        return {
            k: (MASK if any(f in k.lower() for f in MASKED_FIELDS) else mask_fields(v))
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [mask_fields(item) for item in data]
    return data


def _decode_body(raw: bytes, is_json: bool):
    if not raw:
        return {}
    if is_json:
        try:
            return mask_fields(json.loads(raw.decode('utf-8')))
        except ValueError:
            return {}
    return raw.decode('utf-8', errors='replace')[:MAX_RAW_BODY]


class AuditMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.logger = get_app_logger('audit_middleware')
        self.exclude_paths = tuple(exclude_paths or ('/health', '/docs', '/redoc', '/openapi.json'))
        self.hostname = socket.gethostname()

    def _should_audit(self, request: Request) -> bool:
        return LoggingConfig.AUDIT_LOGGING_ENABLED and not request.url.path.startswith(self.exclude_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        set_request_context(RequestContext(
            request_method=request.method,
            request_path=request.url.path,
            app_version=request.headers.get('x-app-version', ''),
        ))
        request_id = create_request_id(request.headers.get(REQUEST_ID_HEADER))
        started_at = datetime.now(timezone.utc)
        started = time.perf_counter()
        audit = self._should_audit(request)
        body = await request.body() if audit else b''

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.logger.error(
                f"request_failed | method={request.method} path={request.url.path} "
                f"error={exc.__class__.__name__} duration_ms={elapsed_ms:.0f}",
                exc_info=True,
            )
            if audit:
                entry = self._audit_entry(request, body, 500, None, elapsed_ms, started_at)
                entry['exception'] = exc.__class__.__name__
                init_audit_logger(request.method).info("request_audit", extra=entry)
            raise
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id
            if audit:
                entry = self._audit_entry(request, body, response.status_code, getattr(response, 'body', None), elapsed_ms, started_at)
                init_audit_logger(request.method).info("request_audit", extra=entry)
            return response
        finally:
            clear_request_context()

    def _audit_entry(self, request: Request, body: bytes, status_code: int, response_body, elapsed_ms: float, started_at: datetime) -> dict:
        response_snapshot = ''
        # only buffered error responses are captured; streamed ones have no body attribute
        if LoggingConfig.CAPTURE_RESPONSE_BODY and status_code >= 400 and response_body is not None:
            response_snapshot = _decode_body(response_body, is_json=True) or response_body.decode('utf-8', errors='replace')[:MAX_RAW_BODY]

        return {
            'request': {
                'query': mask_fields(dict(request.query_params)),
                'body': _decode_body(body, 'application/json' in request.headers.get('content-type', '')),
                'headers': mask_headers(dict(request.headers)),
            },
            'response': response_snapshot,
            'status_code': status_code,
            'duration': round(elapsed_ms, 2),
            'size_in_bytes': len(response_body) if response_body is not None else 0,
            'module_name': request_context.module_name,
            'hostname': self.hostname,
            'app_name': LoggingConfig.SERVICE_NAME,
            'header_referer': request.headers.get('referer', ''),
            'timestamp': started_at.isoformat(),
        }
