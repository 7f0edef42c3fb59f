"""
Resolves a public identifier plus a verified phone to the branch messaging
link the caller should be sent to.
"""
from typing import List, Optional

from support_directory.core.constants import ROOT_BRANCH_NAME, Roles
from support_directory.core.exceptions import NotFound
from support_directory.dto.phone_validations import phones_match
from support_directory.dto.search import DirectoryEntry
from support_directory.middlewares.request_context import request_context
from support_directory.repository.accounts import AccountRepository
from support_directory.repository.branches import BranchRepository
from support_directory.repository.visit_logs import VisitLogRepository
from support_directory.logging.utils import get_app_logger
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()


class DirectoryResolver:
    def __init__(
        self,
        accounts: Optional[AccountRepository] = None,
        branches: Optional[BranchRepository] = None,
        visit_logs: Optional[VisitLogRepository] = None,
        default_wa_link: Optional[str] = None,
        force_wa_link_url: Optional[str] = None,
        force_wa_link_user_ids: Optional[List[str]] = None,
    ):
        self.accounts = accounts or AccountRepository()
        self.branches = branches or BranchRepository()
        self.visit_logs = visit_logs or VisitLogRepository()
        self.default_wa_link = default_wa_link if default_wa_link is not None else configs.DEFAULT_WA_LINK
        self.force_wa_link_url = force_wa_link_url if force_wa_link_url is not None else configs.FORCE_WA_LINK_URL
        self.force_wa_link_user_ids = set(
            force_wa_link_user_ids if force_wa_link_user_ids is not None else configs.FORCE_WA_LINK_FOR_USER_IDS
        )

    def _link_for(self, account):
        branch = self.branches.get(account.branch_ref_id) if account.branch_ref_id else None
        live_link = branch.wa_link if branch else ""
        live_name = branch.branch_name if branch else ""

        if account.role in (Roles.CLIENT, Roles.SUB):
            return account.branch_name or live_name, account.branch_wa_link or live_link
        if account.role == Roles.ROOT:
            return live_name or ROOT_BRANCH_NAME, live_link or self.default_wa_link
        return live_name, live_link

    def _record_visit(self, user_id: str, wa_link: str):
        try:
            self.visit_logs.append(user_id, wa_link)
        except Exception as e:
            logger.error(f"visit_log_failed | user_id={user_id} error={e}", exc_info=True)

    def resolve(self, user_id: str, verified_phone: Optional[str]) -> DirectoryEntry:
        request_context.lookup_user_id = user_id

        account = self.accounts.get_by_user_id(user_id)
        if account is None or not account.is_active:
            logger.info(f"directory_lookup_miss | user_id={user_id} reason={'missing' if account is None else 'inactive'}")
            raise NotFound("User not found")

        if verified_phone is not None and not phones_match(account.phone, verified_phone):
            logger.info(f"directory_lookup_miss | user_id={user_id} reason=phone_mismatch")
            raise NotFound("User not found")

        branch_name, wa_link = self._link_for(account)

        if user_id in self.force_wa_link_user_ids:
            wa_link = self.force_wa_link_url

        self._record_visit(user_id, wa_link)

        request_context.branch_name = branch_name
        logger.info(f"directory_lookup_hit | user_id={user_id} role={account.role} branch_name={branch_name}")
        return DirectoryEntry(user_id=account.user_id, branch_name=branch_name or "", wa_link=wa_link or "")
