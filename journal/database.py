"""SQLModel database engine and session management."""

import logging

from sqlalchemy import inspect
from sqlmodel import SQLModel, create_engine, Session

from journal.config import settings

logger = logging.getLogger(__name__)

# SQLite needs check_same_thread=False; PostgreSQL does not
connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    echo=False,
    connect_args=connect_args,
)

# Columns added after the first release: (table, column, DDL type and default)
_ADDED_COLUMNS = [
    ("trade", "revision", "INTEGER NOT NULL DEFAULT 0"),
    ("ledger_transaction", "from_capital", "FLOAT NOT NULL DEFAULT 0"),
    ("user", "last_login_at", "TIMESTAMP"),
    ("user", "failed_logins", "INTEGER NOT NULL DEFAULT 0"),
]


def _run_migrations(bind=None):
    """Run lightweight schema migrations for columns added to existing tables."""
    from sqlalchemy import text

    bind = bind or engine
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    for table, column, ddl in _ADDED_COLUMNS:
        if table not in tables:
            continue
        columns = {col["name"] for col in inspector.get_columns(table)}
        if column in columns:
            continue
        logger.info(f"Migrating: adding {table}.{column}")
        with bind.connect() as conn:
            conn.execute(text(f'ALTER TABLE "{table}" ADD COLUMN {column} {ddl}'))
            conn.commit()


def create_db_and_tables(bind=None):
    """Create all tables. Called on startup."""
    import journal.models  # noqa: F401  registers tables on SQLModel.metadata

    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    _run_migrations(bind)


def get_session() -> Session:
    """Dependency that yields a database session."""
    with Session(engine) as session:
        yield session
