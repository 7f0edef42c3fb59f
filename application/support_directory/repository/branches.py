"""
Branches Repository
"""
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from support_directory.connections.database import get_db_session
from support_directory.core.exceptions import Conflict
from support_directory.dto.branches import BranchView
from support_directory.models.branches import Branch
from support_directory.logging.utils import get_app_logger

logger = get_app_logger("branches_repository")


class BranchRepository:
    """Repository for branch records"""

    def _one(self, *criteria) -> Optional[BranchView]:
        with get_db_session() as session:
            row = session.scalars(select(Branch).where(*criteria).limit(1)).first()
            return BranchView.model_validate(row) if row else None

    def get(self, pk: int) -> Optional[BranchView]:
        return self._one(Branch.id == pk)

    def get_by_branch_id(self, branch_id: str) -> Optional[BranchView]:
        return self._one(Branch.branch_id == branch_id)

    def get_by_any_id(self, value) -> Optional[BranchView]:
        """Primary key first, then the business branch code."""
        value = str(value).strip()
        if value.isdigit():
            branch = self.get(int(value))
            if branch:
                return branch
        return self.get_by_branch_id(value)

    def find_duplicate(self, branch_id: Optional[str], branch_name: Optional[str], exclude_pk: Optional[int] = None) -> Optional[str]:
        """Conflict message for a clashing branch id or name, None when both are free."""
        clauses = []
        if branch_id:
            clauses.append(Branch.branch_id == branch_id)
        if branch_name:
            clauses.append(Branch.branch_name == branch_name)
        if not clauses:
            return None
        criteria = [or_(*clauses)]
        if exclude_pk is not None:
            criteria.append(Branch.id != exclude_pk)
        with get_db_session() as session:
            rows = session.scalars(select(Branch).where(*criteria)).all()
            if any(row.branch_id == branch_id for row in rows):
                return "Branch ID already exists"
            if rows:
                return "Branch name already exists"
        return None

    def list(self, page: int, limit: int) -> Tuple[List[BranchView], int]:
        with get_db_session(read_only=True) as session:
            total = session.scalar(select(func.count()).select_from(Branch))
            rows = session.scalars(
                select(Branch).order_by(Branch.created_at.desc(), Branch.id.desc()).offset((page - 1) * limit).limit(limit)
            ).all()
            return [BranchView.model_validate(row) for row in rows], int(total or 0)

    def create(self, branch_id: str, branch_name: str, wa_link: str) -> BranchView:
        try:
            with get_db_session() as session:
                row = Branch(branch_id=branch_id, branch_name=branch_name, wa_link=wa_link)
                session.add(row)
                session.flush()
                branch = BranchView.model_validate(row)
        except IntegrityError as e:
            logger.warning(f"branch_create_conflict | branch_id={branch_id} error={e.orig}")
            raise Conflict(self.find_duplicate(branch_id, branch_name) or "Branch already exists") from e
        logger.info(f"branch_created | id={branch.id} branch_id={branch_id}")
        return branch

    def update(self, pk: int, **fields) -> Optional[BranchView]:
        try:
            with get_db_session() as session:
                row = session.get(Branch, pk)
                if row is None:
                    return None
                for key, value in fields.items():
                    setattr(row, key, value)
                session.flush()
                branch = BranchView.model_validate(row)
        except IntegrityError as e:
            logger.warning(f"branch_update_conflict | id={pk} error={e.orig}")
            raise Conflict(
                self.find_duplicate(fields.get("branch_id"), fields.get("branch_name"), exclude_pk=pk) or "Branch already exists"
            ) from e
        logger.info(f"branch_updated | id={pk} fields={sorted(fields)}")
        return branch

    def delete(self, pk: int) -> bool:
        with get_db_session() as session:
            row = session.get(Branch, pk)
            if row is None:
                return False
            session.delete(row)
        logger.info(f"branch_deleted | id={pk}")
        return True
