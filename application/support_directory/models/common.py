from sqlalchemy import Column, TIMESTAMP
from sqlalchemy.sql import func
from support_directory.connections.database import Base
from support_directory.utils.datetime_helpers import utc_now


class CommonModel(Base):
    """Base model with common fields for all models"""
    __abstract__ = True

    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now()
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now()
    )
