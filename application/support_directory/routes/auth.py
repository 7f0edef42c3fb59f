from fastapi import APIRouter, Depends, Request

from support_directory.dto.auth import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    FirstChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
)
from support_directory.dto.common import api_response
from support_directory.middlewares.access_control import Identity, get_current_identity, require_root

auth_router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_service(request: Request):
    return request.app.state.auth_service


@auth_router.post("/login")
def login(payload: LoginRequest, request: Request):
    result = _auth_service(request).login(payload.identifier or payload.email, payload.password)
    return api_response("Login successful", result)


@auth_router.get("/me")
def me(request: Request, identity: Identity = Depends(get_current_identity)):
    return api_response("Profile", _auth_service(request).me(identity.id))


@auth_router.post("/logout")
def logout(request: Request, identity: Identity = Depends(get_current_identity)):
    _auth_service(request).logout(identity.id)
    return api_response("Logged out", {"sessionActive": False})


@auth_router.post("/change-password")
def change_password(payload: ChangePasswordRequest, request: Request, identity: Identity = Depends(require_root)):
    _auth_service(request).change_password(identity.id, payload.current_password, payload.new_password)
    return api_response("Password updated. Please login again.")


@auth_router.post("/first-change-password")
def first_change_password(payload: FirstChangePasswordRequest, request: Request, identity: Identity = Depends(get_current_identity)):
    _auth_service(request).first_time_change_password(
        identity.id, payload.current_password, payload.new_password, payload.confirm_new_password
    )
    return api_response("Password updated successfully. Please login again.")


@auth_router.post("/change-email")
def change_email(payload: ChangeEmailRequest, request: Request, identity: Identity = Depends(require_root)):
    email = _auth_service(request).change_email(identity.id, payload.new_email, payload.password)
    return api_response("Email updated", {"email": email})


@auth_router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, request: Request):
    return api_response(_auth_service(request).forgot_password(payload.email))


@auth_router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, request: Request):
    _auth_service(request).reset_password(payload.token, payload.new_password)
    return api_response("Password reset successful. Please login")
