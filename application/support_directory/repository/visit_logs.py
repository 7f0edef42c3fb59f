"""
Visit Logs Repository
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select

from support_directory.connections.database import get_db_session
from support_directory.models.visit_logs import VisitLog
from support_directory.logging.utils import get_app_logger

logger = get_app_logger("visit_logs_repository")


def _criteria(user_id: Optional[str] = None, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> list:
    criteria = []
    if user_id:
        criteria.append(VisitLog.user_id.icontains(user_id, autoescape=True))
    if date_from:
        criteria.append(VisitLog.created_at >= date_from)
    if date_to:
        criteria.append(VisitLog.created_at <= date_to)
    return criteria


class VisitLogRepository:
    """Append-only visit log"""

    def append(self, user_id: str, wa_link: str) -> None:
        with get_db_session() as session:
            session.add(VisitLog(user_id=user_id, wa_link=wa_link or ""))

    def list(
        self,
        page: int,
        limit: int,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Tuple[List[Dict], int]:
        criteria = _criteria(user_id, date_from, date_to)
        with get_db_session(read_only=True) as session:
            total = session.scalar(select(func.count()).select_from(VisitLog).where(*criteria))
            rows = session.scalars(
                select(VisitLog)
                .where(*criteria)
                .order_by(VisitLog.created_at.desc(), VisitLog.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            items = [{"id": row.id, "user_id": row.user_id, "wa_link": row.wa_link, "created_at": row.created_at} for row in rows]
        return items, int(total or 0)

    def count(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> int:
        with get_db_session(read_only=True) as session:
            return int(session.scalar(select(func.count()).select_from(VisitLog).where(*_criteria(None, since, until))) or 0)

    def count_before(self, since: datetime, before: datetime) -> int:
        with get_db_session(read_only=True) as session:
            return int(session.scalar(
                select(func.count()).select_from(VisitLog).where(VisitLog.created_at >= since, VisitLog.created_at < before)
            ) or 0)

    def recent(self, limit: int = 10) -> List[Dict]:
        items, _ = self.list(page=1, limit=limit)
        return items
