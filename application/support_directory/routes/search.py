"""
Public directory search, gated by a verified-phone credential.
"""
from typing import Optional

from fastapi import APIRouter, Header, Query, Request
from fastapi.responses import RedirectResponse

from support_directory.core.constants import OTP_TOKEN_HEADER, OTP_TOKEN_QUERY_PARAM
from support_directory.core.exceptions import DirectoryError, InternalError, InvalidToken, NotFound, Unauthorized, ValidationError
from support_directory.dto.common import api_response
from support_directory.dto.search import OTPStartRequest, OTPVerifyRequest, OTPVerifyResult

from support_directory.logging.utils import get_app_logger
logger = get_app_logger('routes.search')

search_router = APIRouter(prefix="/search", tags=["search"])


def _verified_phone(request: Request, header_token: Optional[str], query_token: Optional[str]) -> str:
    try:
        return request.app.state.token_issuer.read_phone_credential(header_token or query_token)
    except InvalidToken:
        raise Unauthorized("OTP verification required")


def _lookup(request: Request, user_id: Optional[str], header_token: Optional[str], query_token: Optional[str]):
    user_id = (user_id or "").strip()
    if not user_id:
        raise ValidationError("userId is required")
    phone = _verified_phone(request, header_token, query_token)
    return request.app.state.directory_resolver.resolve(user_id, phone)


@search_router.post("/otp/start")
def start_otp(payload: OTPStartRequest, request: Request):
    request.app.state.otp_verifier.start(payload.phone, payload.channel)
    return api_response("OTP sent successfully")


@search_router.post("/otp/verify")
def verify_otp(payload: OTPVerifyRequest, request: Request):
    result = request.app.state.otp_verifier.check(payload.phone, payload.code)
    return api_response("OTP verified", OTPVerifyResult(**result))


@search_router.get("")
def search_by_user_id(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    otp_token: Optional[str] = Query(None, alias=OTP_TOKEN_QUERY_PARAM),
    x_otp_token: Optional[str] = Header(None, alias=OTP_TOKEN_HEADER),
):
    """
    Query Parameters:
        userId: public identifier of the client or agent
        otpToken: verified-phone credential, when not sent as the x-otp-token header
    """
    try:
        entry = _lookup(request, user_id, x_otp_token, otp_token)
        return api_response("User found", entry)
    except DirectoryError:
        raise
    except Exception as e:
        logger.error(f"search_error | user_id={user_id} error={e}", exc_info=True)
        raise InternalError()


@search_router.get("/redirect")
def redirect_by_user_id(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    otp_token: Optional[str] = Query(None, alias=OTP_TOKEN_QUERY_PARAM),
    x_otp_token: Optional[str] = Header(None, alias=OTP_TOKEN_HEADER),
):
    try:
        entry = _lookup(request, user_id, x_otp_token, otp_token)
    except DirectoryError:
        raise
    except Exception as e:
        logger.error(f"redirect_error | user_id={user_id} error={e}", exc_info=True)
        raise InternalError()

    if not entry.wa_link:
        raise NotFound("User not found")
    return RedirectResponse(url=entry.wa_link, status_code=302)
