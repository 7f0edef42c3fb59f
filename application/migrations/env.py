from alembic import context

from support_directory.connections.database import Base, DATABASE_URL, engine
from support_directory.models.accounts import Account  # noqa: F401
from support_directory.models.branches import Branch  # noqa: F401
from support_directory.models.visit_logs import VisitLog  # noqa: F401

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(url=DATABASE_URL, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
