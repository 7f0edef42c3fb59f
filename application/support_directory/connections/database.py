"""
SQLAlchemy ORM Database Configuration
Lets SQLAlchemy manage connections internally with built-in pooling.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

# Logger
from support_directory.logging.utils import get_app_logger
logger = get_app_logger("database")

# Settings
from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()


def _normalize_url(url: str) -> str:
    # psycopg3 driver
    if url and url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


DATABASE_URL = _normalize_url(configs.DATABASE_URL)
DATABASE_READ_URL = _normalize_url(configs.DATABASE_READ_URL)

Base = declarative_base()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # single shared connection so in-memory databases survive across sessions and threads
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=configs.DATABASE_POOL_SIZE,
        max_overflow=configs.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,     # Validate connections before use
        pool_recycle=3600,      # Recycle connections after 1 hour
        echo=False,
        connect_args={
            "keepalives_idle": 600,
            "keepalives_interval": 30,
            "keepalives_count": 3
        }
    )


engine = _build_engine(DATABASE_URL)

# Read engine (separate for read replicas, same as write if no replica)
read_engine = _build_engine(DATABASE_READ_URL) if DATABASE_READ_URL != DATABASE_URL else engine

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
ReadSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=read_engine)

logger.info(f"database_engines_initialized | dialect={engine.dialect.name} read_replica={read_engine is not engine}")


@contextmanager
def get_db_session(read_only: bool = False):
    """
    Get database session for operations with transaction management.
    Commits on success for write sessions, rolls back on any error.

    Args:
        read_only: Whether to use the read replica session

    Yields:
        SQLAlchemy session object
    """
    session_class = ReadSessionLocal if read_only else SessionLocal
    db = session_class()
    try:
        yield db
        if not read_only:
            db.commit()
    except Exception:
        if not read_only:
            db.rollback()
        raise
    finally:
        db.close()


def check_database() -> bool:
    with get_db_session(read_only=True) as session:
        session.execute(text("SELECT 1"))
    return True


def close_db_pool():
    engine.dispose()
    if read_engine is not engine:
        read_engine.dispose()
