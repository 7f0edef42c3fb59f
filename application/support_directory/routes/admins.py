from fastapi import APIRouter, Depends, Query, status

from support_directory.core.constants import Pagination
from support_directory.core.sub_admins import (
    create_sub_admin_core,
    deactivate_sub_admin_core,
    list_sub_admins_core,
    reset_sub_admin_password_core,
    update_sub_admin_core,
)
from support_directory.dto.admins import PasswordResetByAdminRequest, SubAdminCreateRequest, SubAdminUpdateRequest
from support_directory.middlewares.access_control import Identity, require_root

admins_router = APIRouter(prefix="/admins", tags=["admins"])


@admins_router.post("", status_code=status.HTTP_201_CREATED)
def create_sub_admin(payload: SubAdminCreateRequest, identity: Identity = Depends(require_root)):
    return create_sub_admin_core(payload, identity)


@admins_router.get("")
def list_sub_admins(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_LIMIT),
    identity: Identity = Depends(require_root),
):
    return list_sub_admins_core(identity, page, limit)


@admins_router.put("/{sub_id}")
def update_sub_admin(sub_id: int, payload: SubAdminUpdateRequest, identity: Identity = Depends(require_root)):
    return update_sub_admin_core(sub_id, payload, identity)


@admins_router.post("/{sub_id}/reset-password")
def reset_sub_admin_password(sub_id: int, payload: PasswordResetByAdminRequest, identity: Identity = Depends(require_root)):
    return reset_sub_admin_password_core(sub_id, payload, identity)


@admins_router.delete("/{sub_id}")
def deactivate_sub_admin(sub_id: int, identity: Identity = Depends(require_root)):
    return deactivate_sub_admin_core(sub_id, identity)
