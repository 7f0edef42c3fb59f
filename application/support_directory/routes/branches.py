from fastapi import APIRouter, Depends, Query, status

from support_directory.core.branches import (
    create_branch_core,
    delete_branch_core,
    get_branch_core,
    list_branches_core,
    update_branch_core,
)
from support_directory.core.constants import Pagination
from support_directory.dto.branches import BranchCreateRequest, BranchUpdateRequest
from support_directory.middlewares.access_control import require_root

branches_router = APIRouter(prefix="/branches", tags=["branches"], dependencies=[Depends(require_root)])


@branches_router.get("")
def list_branches(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_LIMIT),
):
    return list_branches_core(page, limit)


@branches_router.post("", status_code=status.HTTP_201_CREATED)
def create_branch(payload: BranchCreateRequest):
    return create_branch_core(payload)


@branches_router.get("/{branch_pk}")
def get_branch(branch_pk: int):
    return get_branch_core(branch_pk)


@branches_router.put("/{branch_pk}")
def update_branch(branch_pk: int, payload: BranchUpdateRequest):
    return update_branch_core(branch_pk, payload)


@branches_router.delete("/{branch_pk}")
def delete_branch(branch_pk: int):
    return delete_branch_core(branch_pk)
