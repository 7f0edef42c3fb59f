from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from support_directory.core.clients import (
    client_stats_core,
    create_client_core,
    deactivate_client_core,
    get_client_core,
    list_clients_core,
    reset_client_password_core,
    update_client_core,
)
from support_directory.core.constants import Pagination
from support_directory.dto.admins import PasswordResetByAdminRequest
from support_directory.dto.clients import ClientCreateRequest, ClientUpdateRequest
from support_directory.middlewares.access_control import (
    Identity,
    get_owned_client,
    require_sub_admin,
    require_sub_admin_or_root,
)

clients_router = APIRouter(prefix="/clients", tags=["clients"])


@clients_router.get("/stats")
def client_stats(identity: Identity = Depends(require_sub_admin)):
    return client_stats_core(identity)


@clients_router.post("/create", status_code=status.HTTP_201_CREATED)
def create_client(payload: ClientCreateRequest, identity: Identity = Depends(require_sub_admin)):
    return create_client_core(payload, identity)


@clients_router.get("")
def list_clients(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_LIMIT),
    search: Optional[str] = Query(None),
    sub_admin_id: Optional[int] = Query(None, alias="subAdminId"),
    identity: Identity = Depends(require_sub_admin_or_root),
):
    return list_clients_core(identity, page, limit, search=search, sub_admin_id=sub_admin_id)


@clients_router.get("/{client_id}")
def get_client(client=Depends(get_owned_client)):
    return get_client_core(client)


@clients_router.put("/{client_id}")
def update_client(payload: ClientUpdateRequest, client=Depends(get_owned_client)):
    return update_client_core(client, payload)


@clients_router.delete("/{client_id}")
def deactivate_client(client=Depends(get_owned_client)):
    return deactivate_client_core(client)


@clients_router.post("/{client_id}/reset-password")
def reset_client_password(payload: PasswordResetByAdminRequest, client=Depends(get_owned_client)):
    return reset_client_password_core(client, payload)
