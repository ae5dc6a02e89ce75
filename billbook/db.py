import logging

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.engine import Engine

from billbook.schema import metadata
from billbook.settings import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None


def _engine_options(url: str) -> dict:
    options: dict = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() == "sqlite":
        return options
    # Fixed ceiling: requests beyond pool_size wait for a free connection.
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=1800,
    )
    return options


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(settings.db_url, **_engine_options(settings.db_url))
        logger.info("Database engine created (pool_size=%d)", settings.db_pool_size)
    return _engine


def dispose_engine() -> None:
    """Close every pooled connection. Called once on shutdown."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")


def initialize_db(engine: Engine | None = None) -> None:
    """Create the bill tables if they do not exist yet."""
    engine = engine or get_engine()
    logger.info("Ensuring bill tables exist")
    metadata.create_all(engine, checkfirst=True)
    logger.info("Tables ready")


def ping(engine: Engine | None = None) -> None:
    """Round-trip a trivial query through a pooled connection. Raises on failure."""
    engine = engine or get_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
