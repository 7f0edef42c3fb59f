from datetime import datetime, timedelta
from typing import Optional

from support_directory.core.constants import Roles
from support_directory.dto.analytics import RealtimeStats, RecentVisit, VisitLogView
from support_directory.dto.common import api_response, paginated
from support_directory.repository.accounts import AccountRepository
from support_directory.repository.visit_logs import VisitLogRepository
from support_directory.utils.datetime_helpers import start_of_day, utc_now


def visit_logs_core(
    page: int,
    limit: int,
    user_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> dict:
    logs, total = VisitLogRepository().list(page, limit, user_id=user_id, date_from=date_from, date_to=date_to)

    accounts = AccountRepository().get_many_by_user_ids(sorted({log["user_id"] for log in logs}))
    views = []
    for log in logs:
        client = accounts.get(log["user_id"])
        if client is not None and client.role != Roles.CLIENT:
            client = None
        views.append(VisitLogView(
            id=log["id"],
            user_id=log["user_id"],
            client_name=(client.name if client and client.name else log["user_id"]),
            client_email=client.email if client else None,
            client_phone=client.phone if client else None,
            branch_name=(client.branch_name if client and client.branch_name else "Unknown Branch"),
            wa_link=log["wa_link"],
            visited_at=log["created_at"],
        ))
    return api_response("Visit logs retrieved", paginated(views, page, limit, total))


def realtime_stats_core() -> dict:
    repo = VisitLogRepository()
    now = utc_now()
    today = start_of_day(now)
    yesterday = today - timedelta(days=1)
    week_start = today - timedelta(days=7)
    month_start = today.replace(day=1)

    stats = RealtimeStats(
        today=repo.count(since=today),
        yesterday=repo.count_before(yesterday, today),
        this_week=repo.count(since=week_start),
        this_month=repo.count(since=month_start),
        total=repo.count(),
        recent_visits=[
            RecentVisit(id=log["id"], user_id=log["user_id"], wa_link=log["wa_link"], visited_at=log["created_at"])
            for log in repo.recent(10)
        ],
    )
    return api_response("Real-time statistics retrieved", stats)
