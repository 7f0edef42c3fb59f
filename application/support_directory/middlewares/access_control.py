"""
Bearer-token access control.

AccessTokenMiddleware authenticates every request under a protected prefix
and attaches the caller's identity; the role dependencies below gate the
individual routes.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from support_directory.core.constants import Roles
from support_directory.core.exceptions import DirectoryError, Forbidden, InvalidToken, NotFound, Unauthorized
from support_directory.middlewares.request_context import request_context
from support_directory.repository.accounts import AccountRepository
from support_directory.services.token_service import TokenIssuer
from support_directory.logging.utils import get_app_logger

logger = get_app_logger(__name__)

PROTECTED_PATH_PREFIXES = (
    "/auth/me",
    "/auth/logout",
    "/auth/change-password",
    "/auth/first-change-password",
    "/auth/change-email",
    "/branches",
    "/admins",
    "/clients",
    "/analytics",
)


@dataclass(frozen=True)
class Identity:
    id: int
    role: str
    email: Optional[str] = None
    user_id: Optional[str] = None


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    if not header_value:
        return None
    header = header_value.strip()
    if len(header) >= 7 and header[:7].lower() == "bearer ":
        return header[7:].strip() or None
    return None


class AccessControl:
    def __init__(self, accounts: Optional[AccountRepository] = None, token_issuer: Optional[TokenIssuer] = None):
        self.accounts = accounts or AccountRepository()
        self.token_issuer = token_issuer or TokenIssuer()

    def authenticate(self, authorization: Optional[str]) -> Identity:
        token = extract_bearer_token(authorization)
        if not token:
            raise Unauthorized("Unauthorized")

        try:
            claims = self.token_issuer.validate(token)
        except InvalidToken:
            raise Unauthorized("Unauthorized")

        account = self.accounts.get_by_id(claims.subject_id)
        if account is None:
            raise Unauthorized("Invalid token user")
        if not account.is_active:
            raise Forbidden("Account disabled")
        if claims.token_version is not None and claims.token_version != account.token_version:
            logger.info(f"token_invalidated | id={account.id} token_version={claims.token_version} current={account.token_version}")
            raise Unauthorized("Token invalidated")

        return Identity(id=account.id, role=account.role, email=account.email, user_id=account.user_id)


class AccessTokenMiddleware(BaseHTTPMiddleware):

    include_path_prefixes = PROTECTED_PATH_PREFIXES

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        if not request.url.path.startswith(self.include_path_prefixes):
            return await call_next(request)

        access_control: AccessControl = request.app.state.access_control
        try:
            identity = await run_in_threadpool(access_control.authenticate, request.headers.get("authorization"))
        except DirectoryError as e:
            logger.warning(f"access_denied | path={request.url.path} status={e.status_code} reason={e.message}")
            return JSONResponse(status_code=e.status_code, content={"success": False, "message": e.message})

        request.state.identity = identity
        request_context.user_id = str(identity.id)
        request_context.user_role = identity.role
        return await call_next(request)


def get_current_identity(request: Request) -> Identity:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise Unauthorized("Unauthorized")
    return identity


def require_root(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role != Roles.ROOT:
        raise Forbidden("Forbidden")
    return identity


def require_sub_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role != Roles.SUB:
        raise Forbidden("Sub-admin access required")
    return identity


def require_sub_admin_or_root(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role not in Roles.ADMINS:
        raise Forbidden("Sub-admin or Root access required")
    return identity


def get_owned_client(client_id: int, identity: Identity = Depends(require_sub_admin)):
    """The client, if the calling sub-admin is its parent; otherwise it does not exist."""
    client = AccountRepository().get_owned_client(client_id, identity.id)
    if client is None:
        raise NotFound("Client not found or access denied")
    return client
