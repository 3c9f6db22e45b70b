# crowdvision/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy — SQLite by default, PostgreSQL via DATABASE_URL. All models
are imported in create_tables() so one call creates every table.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from crowdvision.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync routes in a threadpool; SQLite must allow that
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,       # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,                      # Set True to log all SQL queries (debug only)
    **_engine_kwargs(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from crowdvision.models.detection_record import DetectionRecord   # noqa

    Base.metadata.create_all(bind=engine)
