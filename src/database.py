"""Menu catalog database for ChopXpress"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from config import get_database_url

# Base class for models
Base = declarative_base()


def create_db_engine(url: str, **kwargs):
    """SQLite engine usable from the API threadpool; WAL for file databases"""
    engine = create_engine(url, connect_args={"check_same_thread": False}, **kwargs)

    if url.startswith("sqlite:///") and ":memory:" not in url:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

    return engine


engine = create_db_engine(get_database_url())

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create the catalog tables"""
    import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
