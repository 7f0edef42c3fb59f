from typing import Optional

from support_directory.core.constants import Roles
from support_directory.core.exceptions import Conflict, NotFound, ValidationError
from support_directory.dto.admins import PasswordResetByAdminRequest
from support_directory.dto.clients import ClientCreateRequest, ClientStats, ClientUpdateRequest, ClientView
from support_directory.dto.common import api_response, clean_optional, paginated
from support_directory.dto.phone_validations import normalize_phone
from support_directory.middlewares.access_control import Identity
from support_directory.repository.accounts import AccountRepository
from support_directory.repository.branches import BranchRepository
from support_directory.utils.passwords import hash_password

# Logger
from support_directory.logging.utils import get_app_logger
logger = get_app_logger("core.clients")


def client_stats_core(identity: Identity) -> dict:
    stats = AccountRepository().client_stats(identity.id)
    return api_response("Client statistics", ClientStats(**stats))


def create_client_core(payload: ClientCreateRequest, identity: Identity) -> dict:
    if not payload.user_id or not payload.name:
        raise ValidationError("userId and name are required")

    accounts = AccountRepository()
    if accounts.get_by_user_id(payload.user_id):
        raise Conflict("This client ID is already registered with another sub-admin")

    sub = accounts.get_by_id(identity.id)
    if sub is None:
        raise ValidationError("SubAdmin not found")
    if not sub.branch_ref_id and not sub.branch_wa_link:
        raise ValidationError("SubAdmin branch information not found (waLink missing)")

    branch = BranchRepository().get(sub.branch_ref_id) if sub.branch_ref_id else None
    email = payload.email.lower() if payload.email else None
    if email and accounts.email_taken(email):
        raise Conflict("Email already in use")

    client = accounts.create(
        user_id=payload.user_id,
        name=payload.name,
        email=email,
        phone=normalize_phone(payload.phone) or None,
        role=Roles.CLIENT,
        password_hash=hash_password(payload.password) if payload.password else None,
        is_active=True,
        parent_sub_admin_id=sub.id,
        created_by=sub.id,
        branch_ref_id=branch.id if branch else None,
        branch_name=sub.branch_name or (branch.branch_name if branch else None),
        branch_wa_link=sub.branch_wa_link or (branch.wa_link if branch else None),
    )
    logger.info(f"client_created | id={client.id} parent={sub.id}")
    return api_response("Client created successfully", ClientView.from_account(client).to_response())


def list_clients_core(identity: Identity, page: int, limit: int, search: Optional[str] = None, sub_admin_id: Optional[int] = None) -> dict:
    accounts = AccountRepository()
    parent_filter = identity.id if identity.role == Roles.SUB else sub_admin_id
    items, total = accounts.list_clients(page, limit, parent_sub_admin_id=parent_filter, search=clean_optional(search))

    parents = {}
    if identity.role == Roles.ROOT:
        parents = accounts.get_many_by_ids(sorted({c.parent_sub_admin_id for c in items if c.parent_sub_admin_id}))
    views = [ClientView.from_account(c, parents.get(c.parent_sub_admin_id)).to_response() for c in items]
    return api_response("Clients fetched successfully", paginated(views, page, limit, total))


def get_client_core(client) -> dict:
    return api_response("Client details fetched", ClientView.from_account(client).to_response())


def update_client_core(client, payload: ClientUpdateRequest) -> dict:
    accounts = AccountRepository()
    changes = {}
    if payload.name is not None:
        name = clean_optional(payload.name)
        if not name:
            raise ValidationError("name cannot be empty")
        changes["name"] = name
    if payload.phone is not None:
        changes["phone"] = normalize_phone(payload.phone) or None
    if payload.is_active is not None:
        changes["is_active"] = payload.is_active
    if payload.email is not None:
        email = clean_optional(payload.email)
        email = email.lower() if email else None
        if email != client.email:
            if email and accounts.email_taken(email, exclude_id=client.id):
                raise Conflict("Email already in use")
            changes["email"] = email

    if changes:
        accounts.update_fields(client.id, **changes)
        client = accounts.get_by_id(client.id)
        if client is None:
            raise NotFound("Client not found or access denied")
    return api_response("Client updated successfully", ClientView.from_account(client).to_response())


def deactivate_client_core(client) -> dict:
    AccountRepository().update_fields(client.id, is_active=False)
    logger.info(f"client_deactivated | id={client.id}")
    return api_response("Client deactivated successfully")


def reset_client_password_core(client, payload: PasswordResetByAdminRequest) -> dict:
    if not payload.new_password:
        raise ValidationError("newPassword is required")
    AccountRepository().bump_token_version(client.id, password_hash=hash_password(payload.new_password))
    logger.info(f"client_password_reset | id={client.id}")
    return api_response("Client password reset successfully")
