from datetime import datetime
from typing import Optional

from support_directory.dto.common import CamelModel


class VisitLogView(CamelModel):
    id: int
    user_id: str
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    branch_name: str
    wa_link: str
    visited_at: Optional[datetime] = None


class RecentVisit(CamelModel):
    id: int
    user_id: str
    wa_link: str
    visited_at: Optional[datetime] = None


class RealtimeStats(CamelModel):
    today: int
    yesterday: int
    this_week: int
    this_month: int
    total: int
    recent_visits: list[RecentVisit]
