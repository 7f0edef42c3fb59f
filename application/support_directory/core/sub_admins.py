from support_directory.core.constants import Roles
from support_directory.core.exceptions import Conflict, NotFound, ValidationError
from support_directory.dto.admins import PasswordResetByAdminRequest, SubAdminCreateRequest, SubAdminUpdateRequest, SubAdminView
from support_directory.dto.common import api_response, paginated
from support_directory.dto.phone_validations import normalize_phone
from support_directory.middlewares.access_control import Identity
from support_directory.repository.accounts import AccountRepository
from support_directory.repository.branches import BranchRepository
from support_directory.utils.passwords import hash_password

# Logger
from support_directory.logging.utils import get_app_logger
logger = get_app_logger("core.sub_admins")


def _resolve_branch(branch_id: str):
    branch = BranchRepository().get_by_any_id(branch_id)
    if branch is None:
        raise ValidationError("Invalid branchId")
    return branch


def create_sub_admin_core(payload: SubAdminCreateRequest, identity: Identity) -> dict:
    if not payload.password or not payload.user_id or not payload.username:
        raise ValidationError("password, userId, username are required")
    if not payload.branch_id and not payload.wa_link:
        raise ValidationError("branchId or waLink is required")

    accounts = AccountRepository()
    email = payload.email.lower() if payload.email else None
    username = payload.username.lower()

    if email and accounts.email_taken(email):
        raise Conflict("Email already in use")
    if accounts.username_taken(username):
        raise Conflict("Username already in use")
    if accounts.get_by_user_id(payload.user_id):
        raise Conflict("User ID already exists")

    fields = {}
    branch = None
    if payload.wa_link:
        # a direct link wins over a branch reference
        fields["branch_wa_link"] = payload.wa_link
    else:
        branch = _resolve_branch(payload.branch_id)
        fields.update(branch_ref_id=branch.id, branch_name=branch.branch_name, branch_wa_link=branch.wa_link)

    sub = accounts.create(
        user_id=payload.user_id,
        username=username,
        email=email,
        name=payload.name,
        phone=normalize_phone(payload.phone) or None,
        role=Roles.SUB,
        password_hash=hash_password(payload.password),
        is_active=payload.is_active,
        must_change_password=payload.must_change_password,
        created_by=identity.id,
        token_version=0,
        **fields,
    )
    logger.info(f"sub_admin_created | id={sub.id} created_by={identity.id}")
    return api_response("Sub admin created", SubAdminView.from_account(sub, branch))


def list_sub_admins_core(identity: Identity, page: int, limit: int) -> dict:
    items, total = AccountRepository().list_sub_admins(identity.id, page, limit)
    branches = BranchRepository()
    views = [
        SubAdminView.from_account(sub, branches.get(sub.branch_ref_id) if sub.branch_ref_id else None)
        for sub in items
    ]
    return api_response("Sub admins fetched", paginated(views, page, limit, total))


def _owned_sub_admin(accounts: AccountRepository, sub_id: int, identity: Identity):
    sub = accounts.get_sub_admin(sub_id, identity.id)
    if sub is None:
        raise NotFound("Sub admin not found")
    return sub


def update_sub_admin_core(sub_id: int, payload: SubAdminUpdateRequest, identity: Identity) -> dict:
    accounts = AccountRepository()
    sub = _owned_sub_admin(accounts, sub_id, identity)

    changes = {}
    if payload.is_active is not None:
        changes["is_active"] = payload.is_active
    if payload.name is not None:
        changes["name"] = payload.name
    if payload.phone is not None:
        changes["phone"] = normalize_phone(payload.phone) or None
    if payload.wa_link:
        # a direct link detaches the branch
        changes.update(branch_ref_id=None, branch_name=None, branch_wa_link=payload.wa_link)
    elif payload.branch_id:
        branch = _resolve_branch(payload.branch_id)
        changes.update(branch_ref_id=branch.id, branch_name=branch.branch_name, branch_wa_link=branch.wa_link)

    if changes:
        if changes.get("is_active") is False and sub.is_active:
            # deactivation ends every open session
            accounts.bump_token_version(sub.id, **changes)
        else:
            accounts.update_fields(sub.id, **changes)
        sub = accounts.get_by_id(sub.id)

    branch = BranchRepository().get(sub.branch_ref_id) if sub.branch_ref_id else None
    return api_response("Sub admin updated", SubAdminView.from_account(sub, branch))


def reset_sub_admin_password_core(sub_id: int, payload: PasswordResetByAdminRequest, identity: Identity) -> dict:
    if not payload.new_password:
        raise ValidationError("newPassword is required")
    accounts = AccountRepository()
    sub = _owned_sub_admin(accounts, sub_id, identity)
    accounts.bump_token_version(sub.id, password_hash=hash_password(payload.new_password))
    logger.info(f"sub_admin_password_reset | id={sub.id}")
    return api_response("Password reset; user must login again.")


def deactivate_sub_admin_core(sub_id: int, identity: Identity) -> dict:
    accounts = AccountRepository()
    sub = _owned_sub_admin(accounts, sub_id, identity)
    accounts.bump_token_version(sub.id, is_active=False)
    logger.info(f"sub_admin_deactivated | id={sub.id}")
    return api_response("Sub admin deactivated")
