from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func
from support_directory.connections.database import Base
from support_directory.utils.datetime_helpers import utc_now


class VisitLog(Base):
    """Append-only record of a resolved directory lookup"""
    __tablename__ = "visit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    wa_link = Column(String(512), nullable=False, default="")
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
        index=True,
    )
