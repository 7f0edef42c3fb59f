from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from support_directory.core.analytics import realtime_stats_core, visit_logs_core
from support_directory.core.constants import Pagination
from support_directory.middlewares.access_control import require_sub_admin_or_root

analytics_router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[Depends(require_sub_admin_or_root)])


@analytics_router.get("/visit-logs")
def visit_logs(
    page: int = Query(Pagination.DEFAULT_PAGE, ge=1),
    limit: int = Query(Pagination.VISIT_LOGS_DEFAULT_LIMIT, ge=1, le=Pagination.VISIT_LOGS_MAX_LIMIT),
    user_id: Optional[str] = Query(None, alias="userId"),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
):
    return visit_logs_core(page, limit, user_id=user_id, date_from=date_from, date_to=date_to)


@analytics_router.get("/realtime-stats")
def realtime_stats():
    return realtime_stats_core()
