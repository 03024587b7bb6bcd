"""
Engine and session plumbing for the fridge inventory store.

Every service opens its unit of work through session_scope(), unless the
caller passes its own session. SQLite connections get foreign keys and WAL
turned on; other backends are used as configured.
"""

from contextlib import contextmanager
import logging
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..utils.config import get_config

logger = logging.getLogger(__name__)

_REQUIRED_TABLES = ("stock_lots", "recipes", "recipe_ingredients", "ingredients", "units")

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def _is_sqlite_connection(dbapi_connection) -> bool:
    return type(dbapi_connection).__module__.split(".")[0] in ("sqlite3", "pysqlite2")


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Turn on FK enforcement and WAL for every new SQLite connection."""
    if not _is_sqlite_connection(dbapi_connection):
        return

    cursor = dbapi_connection.cursor()
    for pragma in ("foreign_keys=ON", "journal_mode=WAL", "synchronous=NORMAL"):
        cursor.execute(f"PRAGMA {pragma}")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build an engine for the given URL (the configured one by default).

    In-memory SQLite shares a single connection so every session sees the
    same tables.
    """
    if database_url is None:
        config = get_config()
        database_url = config.database_url
        if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
            config.ensure_directories()

    logger.info(f"Creating database engine: {database_url}")

    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)

    if ":memory:" in database_url or "mode=memory" in database_url:
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30},
    )


def get_engine(force_recreate: bool = False) -> Engine:
    """Process-wide engine, created on first use."""
    global _engine

    if force_recreate or _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Process-wide session factory bound to get_engine().

    Objects stay readable after commit (expire_on_commit=False), so results
    returned by services can be used once their session is closed.
    """
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Unit of work: commit when the block finishes, roll back if it raises.

    Example:
        with session_scope() as session:
            session.add(StockLot(...))
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing tables. Existing tables are left alone."""
    engine = engine or get_engine()

    # Registers every model on Base.metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("Database tables created or already present")


def verify_database() -> bool:
    """True if the store is reachable and holds the inventory tables."""
    try:
        present = set(inspect(get_engine()).get_table_names())
    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        return False
    return all(table in present for table in _REQUIRED_TABLES)


def reset_database(confirm: bool = False) -> None:
    """
    Drop and recreate every table.

    Raises:
        ValueError: Unless confirm=True; this deletes all inventory data
    """
    if not confirm:
        raise ValueError("reset_database() deletes all data; pass confirm=True")

    from .. import models  # noqa: F401

    engine = get_engine()
    logger.warning("Dropping all tables")
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("All tables recreated")


def close_connections() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _SessionFactory

    _SessionFactory = None
    if _engine is not None:
        _engine.dispose()
        _engine = None
    logger.info("Database connections closed")


def initialize_app_database() -> None:
    """Open (or create) the configured database and make sure its tables exist."""
    config = get_config()
    action = "Using existing" if config.database_exists() else "Creating new"
    logger.info(f"{action} database at: {config.database_url}")

    init_database(get_engine())

    if verify_database():
        logger.info("Database ready")
    else:
        logger.warning("Database verification failed; tables may be missing")
