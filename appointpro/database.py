import logging
import os
import time
from contextlib import contextmanager

from sqlalchemy import create_engine, event, update
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across the server threadpool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Configure engine with bounded connection pooling
try:
    engine = create_engine(
        DATABASE_URL,
        connect_args=_connect_args(DATABASE_URL),
        pool_pre_ping=True,  # Test connections before using
        pool_recycle=POOL_RECYCLE,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,  # Bounded wait for a connection
        echo=False,  # Don't log all SQL (use slow query logging instead)
    )
    logger.info("✅ Database engine created successfully")
    logger.info(
        f"📊 Connection pool: size={POOL_SIZE}, max_overflow={MAX_OVERFLOW}, timeout={POOL_TIMEOUT}s"
    )
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

# Slow query logging for performance monitoring
if ENABLE_QUERY_LOGGING:

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    logger.info(f"📊 Slow query logging enabled (threshold: {SLOW_QUERY_THRESHOLD}s)")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """
    Create all tables. Must complete before the app accepts traffic;
    any failure propagates so startup aborts.
    """
    from . import models  # noqa: F401 - register models with Base

    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
    logger.info("✅ Database tables created successfully")


@contextmanager
def transaction(db: Session):
    """
    All-or-nothing unit of work on a dedicated session.
    Commits on success, rolls back and re-raises on any failure.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("↩️ Transaction rolled back")
        raise


def build_partial_update(model, where, fields: dict):
    """
    Build a parameterized UPDATE touching only the supplied columns.

    Args:
        model: Mapped class to update
        where: SQLAlchemy boolean clause selecting the row(s)
        fields: Sparse mapping of column name -> new value

    Returns:
        An Update statement, or None when there is nothing to set
    """
    columns = model.__table__.columns
    values = {name: value for name, value in fields.items() if name in columns}
    unknown = set(fields) - set(values)
    if unknown:
        raise ValueError(f"Unknown columns for {model.__tablename__}: {sorted(unknown)}")
    if not values:
        return None
    return update(model).where(where).values(**values)
