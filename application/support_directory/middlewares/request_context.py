"""
Per-request state kept in a ContextVar, so loggers and services can read the
request id, caller and lookup target without being handed the request.
"""
import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass
class RequestContext:
    request_id: str = ""
    request_method: str = ""
    request_path: str = ""
    app_version: str = ""
    module_name: str = ""
    # authenticated caller
    user_id: str = ""
    user_role: str = ""
    # directory lookup
    lookup_user_id: str = ""
    branch_name: str = ""

    def log_fields(self) -> dict:
        return asdict(self)


_current: ContextVar[Optional[RequestContext]] = ContextVar("support_directory_request_context", default=None)


def current_request_context() -> RequestContext:
    ctx = _current.get()
    if ctx is None:
        ctx = RequestContext()
        _current.set(ctx)
    return ctx


class _RequestContextProxy:
    """Reads and writes go to the RequestContext owned by the running task."""

    def __getattr__(self, name):
        return getattr(current_request_context(), name)

    def __setattr__(self, name, value):
        setattr(current_request_context(), name, value)


request_context = _RequestContextProxy()


def set_request_context(ctx: RequestContext):
    _current.set(ctx)


def clear_request_context():
    _current.set(None)


def create_request_id(incoming: Optional[str] = None) -> str:
    """Reuse a caller-supplied id when present, otherwise mint one."""
    request_id = (incoming or "").strip()[:64] or uuid.uuid4().hex
    request_context.request_id = request_id
    return request_id
