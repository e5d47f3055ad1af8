import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from intima.core.config import get_settings

logger = logging.getLogger(__name__)


def make_engine(database_url: str, **kwargs):
    """Engine for Postgres in production or SQLite for local runs and tests."""
    if database_url.startswith("sqlite"):
        # Background validation runs in a worker thread
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **kwargs)


settings = get_settings()

if not settings.database_url:
    logger.warning("DATABASE_URL is not set; database access will fail")
    _engine = None
    SessionLocal = None
else:
    _engine = make_engine(settings.database_url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)


def get_db():
    if SessionLocal is None:
        raise RuntimeError("DATABASE_URL is not set")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Session factory for work that outlives the request (background validation)."""
    if SessionLocal is None:
        raise RuntimeError("DATABASE_URL is not set")
    return SessionLocal
