"""
Database setup
SQLite for development, PostgreSQL in production
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from learnplatform.core.config import get_settings

DATABASE_URL = get_settings().database_url

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {}
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Request-scoped database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
