from support_directory.core.exceptions import Conflict, NotFound, ValidationError
from support_directory.dto.branches import BranchCreateRequest, BranchUpdateRequest
from support_directory.dto.common import api_response, paginated
from support_directory.repository.branches import BranchRepository

# Logger
from support_directory.logging.utils import get_app_logger
logger = get_app_logger("core.branches")


def list_branches_core(page: int, limit: int) -> dict:
    items, total = BranchRepository().list(page, limit)
    return api_response("Branches fetched", paginated(items, page, limit, total))


def create_branch_core(payload: BranchCreateRequest) -> dict:
    if not payload.branch_id or not payload.branch_name or not payload.wa_link:
        raise ValidationError("branchId, branchName, waLink are required")

    repo = BranchRepository()
    duplicate = repo.find_duplicate(payload.branch_id, payload.branch_name)
    if duplicate:
        raise Conflict(duplicate)

    branch = repo.create(payload.branch_id, payload.branch_name, payload.wa_link)
    return api_response("Branch created", branch)


def get_branch_core(pk: int) -> dict:
    branch = BranchRepository().get(pk)
    if branch is None:
        raise NotFound("Branch not found")
    return api_response("Branch fetched", branch)


def update_branch_core(pk: int, payload: BranchUpdateRequest) -> dict:
    repo = BranchRepository()
    branch = repo.get(pk)
    if branch is None:
        raise NotFound("Branch not found")

    changes = {}
    if payload.branch_id and payload.branch_id != branch.branch_id:
        changes["branch_id"] = payload.branch_id
    if payload.branch_name and payload.branch_name != branch.branch_name:
        changes["branch_name"] = payload.branch_name
    if payload.wa_link:
        changes["wa_link"] = payload.wa_link

    duplicate = repo.find_duplicate(changes.get("branch_id"), changes.get("branch_name"), exclude_pk=pk)
    if duplicate:
        raise Conflict(duplicate)

    # account snapshots keep the values they were created with
    updated = repo.update(pk, **changes) if changes else branch
    if updated is None:
        raise NotFound("Branch not found")
    return api_response("Branch updated", updated)


def delete_branch_core(pk: int) -> dict:
    if not BranchRepository().delete(pk):
        raise NotFound("Branch not found")
    logger.info(f"branch_removed | id={pk}")
    return api_response("Branch deleted")
