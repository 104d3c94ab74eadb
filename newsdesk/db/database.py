from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os
from typing import Optional
from functools import lru_cache

# Database URLs per environment
SQLITE_DEV_DB = "sqlite:///./newsdesk-dev.db"
SQLITE_TEST_DB = "sqlite:///./newsdesk-test.db"
SQLITE_PROD_DB = "sqlite:///./newsdesk.db"

Base = declarative_base()

def get_database_url() -> str:
    """Resolve the database URL from APP_ENV"""
    env = os.getenv("APP_ENV", "development")
    if env == "test":
        return SQLITE_TEST_DB
    if env == "production":
        return os.getenv("DATABASE_URL", SQLITE_PROD_DB)
    return os.getenv("DATABASE_URL", SQLITE_DEV_DB)

@lru_cache()
def get_engine():
    """Get the database engine"""
    database_url = get_database_url()
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)

def get_session_maker(db_engine: Optional[object] = None):
    """Get the session factory"""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine or get_engine())

def get_session():
    """Yield a database session for one request"""
    SessionLocal = get_session_maker()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

def create_tables(db_engine: Optional[object] = None):
    """Create all tables

    Args:
        db_engine: optional engine, defaults to the configured one
    """
    # register every model on Base.metadata
    from newsdesk.models import article, category, comment, deletion_request, role_change, user  # noqa: F401

    engine = db_engine or get_engine()
    Base.metadata.create_all(bind=engine)
