"""
Accounts Repository

All reads and writes of the accounts table. Rows leave this module as
validated Account variants; mutations are single UPDATE statements.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError

from support_directory.connections.database import get_db_session
from support_directory.core.constants import Roles
from support_directory.core.exceptions import Conflict
from support_directory.dto.accounts import Account, to_account
from support_directory.models.accounts import Account as AccountRow
from support_directory.utils.datetime_helpers import utc_now
from support_directory.logging.utils import get_app_logger

logger = get_app_logger("accounts_repository")


def _conflict_message(error: IntegrityError) -> str:
    detail = str(error.orig).lower()
    if "email" in detail:
        return "Email already in use"
    if "username" in detail:
        return "Username already in use"
    if "user_id" in detail:
        return "User ID already exists"
    return "Account already exists"


class AccountRepository:
    """Repository for account lookups and atomic account updates"""

    def _find_one(self, *criteria, read_only: bool = False) -> Optional[Account]:
        with get_db_session(read_only=read_only) as session:
            row = session.scalars(
                select(AccountRow).where(*criteria).order_by(AccountRow.id.asc()).limit(1)
            ).first()
            return to_account(row) if row else None

    def get_by_id(self, account_id: int) -> Optional[Account]:
        return self._find_one(AccountRow.id == account_id)

    def get_by_user_id(self, user_id: str) -> Optional[Account]:
        return self._find_one(AccountRow.user_id == user_id)

    def get_by_username(self, username: str) -> Optional[Account]:
        return self._find_one(AccountRow.username == username.strip().lower())

    def get_by_email(self, email: str, role: Optional[str] = None) -> Optional[Account]:
        criteria = [AccountRow.email == email.strip().lower()]
        if role:
            criteria.append(AccountRow.role == role)
        return self._find_one(*criteria)

    def find_by_phone(self, phone: str) -> Optional[Account]:
        # active accounts win when a phone is shared
        with get_db_session() as session:
            row = session.scalars(
                select(AccountRow)
                .where(AccountRow.phone == phone)
                .order_by(AccountRow.is_active.desc(), AccountRow.id.asc())
                .limit(1)
            ).first()
            return to_account(row) if row else None

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        criteria = [AccountRow.email == email.strip().lower()]
        if exclude_id is not None:
            criteria.append(AccountRow.id != exclude_id)
        return self._find_one(*criteria) is not None

    def username_taken(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def create(self, **fields) -> Account:
        try:
            with get_db_session() as session:
                row = AccountRow(**fields)
                session.add(row)
                session.flush()
                # validate the variant before the transaction commits
                account = to_account(row)
            logger.info(f"account_created | id={account.id} user_id={account.user_id} role={account.role}")
            return account
        except IntegrityError as e:
            logger.warning(f"account_create_conflict | user_id={fields.get('user_id')} error={e.orig}")
            raise Conflict(_conflict_message(e)) from e

    def update_fields(self, account_id: int, **fields) -> bool:
        """Single-statement update of plain fields; returns False when no row matched."""
        try:
            with get_db_session() as session:
                result = session.execute(
                    update(AccountRow)
                    .where(AccountRow.id == account_id)
                    .values(**fields, updated_at=utc_now())
                )
                updated = result.rowcount == 1
        except IntegrityError as e:
            logger.warning(f"account_update_conflict | id={account_id} error={e.orig}")
            raise Conflict(_conflict_message(e)) from e
        logger.info(f"account_updated | id={account_id} fields={sorted(fields)} updated={updated}")
        return updated

    def bump_token_version(self, account_id: int, **fields) -> bool:
        """Increment token_version together with any other fields in one UPDATE."""
        with get_db_session() as session:
            result = session.execute(
                update(AccountRow)
                .where(AccountRow.id == account_id)
                .values(token_version=AccountRow.token_version + 1, updated_at=utc_now(), **fields)
            )
            updated = result.rowcount == 1
        logger.info(f"token_version_bumped | id={account_id} fields={sorted(fields)} updated={updated}")
        return updated

    def set_reset_token(self, account_id: int, token_hash: Optional[str], expires_at: Optional[datetime]) -> bool:
        return self.update_fields(account_id, reset_password_token=token_hash, reset_password_expires=expires_at)

    def consume_reset_token(self, token_hash: str, password_hash: str) -> bool:
        """
        Redeem a reset token: the WHERE clause matches the token hash, so only
        one caller can ever win the update for a given token.
        """
        now = utc_now()
        with get_db_session() as session:
            result = session.execute(
                update(AccountRow)
                .where(
                    AccountRow.reset_password_token == token_hash,
                    AccountRow.reset_password_expires > now,
                    AccountRow.role == Roles.ROOT,
                )
                .values(
                    password_hash=password_hash,
                    reset_password_token=None,
                    reset_password_expires=None,
                    token_version=AccountRow.token_version + 1,
                    updated_at=now,
                )
            )
            consumed = result.rowcount == 1
        logger.info(f"reset_token_consumed | consumed={consumed}")
        return consumed

    def _page(self, criteria: list, page: int, limit: int) -> Tuple[List[Account], int]:
        with get_db_session(read_only=True) as session:
            total = session.scalar(select(func.count()).select_from(AccountRow).where(*criteria))
            rows = session.scalars(
                select(AccountRow)
                .where(*criteria)
                .order_by(AccountRow.created_at.desc(), AccountRow.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return [to_account(row) for row in rows], int(total or 0)

    def list_sub_admins(self, created_by: int, page: int, limit: int) -> Tuple[List[Account], int]:
        return self._page([AccountRow.role == Roles.SUB, AccountRow.created_by == created_by], page, limit)

    def get_sub_admin(self, account_id: int, created_by: int) -> Optional[Account]:
        return self._find_one(
            AccountRow.id == account_id,
            AccountRow.role == Roles.SUB,
            AccountRow.created_by == created_by,
        )

    def list_clients(
        self,
        page: int,
        limit: int,
        parent_sub_admin_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Account], int]:
        criteria = [AccountRow.role == Roles.CLIENT]
        if parent_sub_admin_id is not None:
            criteria.append(AccountRow.parent_sub_admin_id == parent_sub_admin_id)
        if search:
            criteria.append(or_(
                AccountRow.user_id.icontains(search, autoescape=True),
                AccountRow.name.icontains(search, autoescape=True),
                AccountRow.email.icontains(search, autoescape=True),
                AccountRow.phone.icontains(search, autoescape=True),
            ))
        return self._page(criteria, page, limit)

    def get_owned_client(self, client_id: int, parent_sub_admin_id: int) -> Optional[Account]:
        return self._find_one(
            AccountRow.id == client_id,
            AccountRow.role == Roles.CLIENT,
            AccountRow.parent_sub_admin_id == parent_sub_admin_id,
        )

    def client_stats(self, parent_sub_admin_id: int) -> Dict[str, int]:
        with get_db_session(read_only=True) as session:
            rows = session.execute(
                select(AccountRow.is_active, func.count())
                .where(AccountRow.role == Roles.CLIENT, AccountRow.parent_sub_admin_id == parent_sub_admin_id)
                .group_by(AccountRow.is_active)
            ).all()
        counts = {bool(is_active): int(count) for is_active, count in rows}
        active, inactive = counts.get(True, 0), counts.get(False, 0)
        return {"total": active + inactive, "active": active, "inactive": inactive}

    def get_many_by_user_ids(self, user_ids: List[str]) -> Dict[str, Account]:
        if not user_ids:
            return {}
        with get_db_session(read_only=True) as session:
            rows = session.scalars(select(AccountRow).where(AccountRow.user_id.in_(user_ids))).all()
            return {row.user_id: to_account(row) for row in rows}

    def get_many_by_ids(self, ids: List[int]) -> Dict[int, Account]:
        if not ids:
            return {}
        with get_db_session(read_only=True) as session:
            rows = session.scalars(select(AccountRow).where(AccountRow.id.in_(ids))).all()
            return {row.id: to_account(row) for row in rows}
