"""Database session management with connection pooling"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from bet_analytics.config import settings


def build_engine(database_url: str | None = None) -> Engine:
    """Pooled engine; recycle after 1 hour to avoid stale connections"""
    return create_engine(
        database_url or settings.database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory; the stores open one short-lived session per call"""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
