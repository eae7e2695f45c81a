"""Database session management"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from ticket_gateway.config import settings
from ticket_gateway.infrastructure.database.models import Base

# SQLite connections are shared across the threadpool FastAPI runs sync handlers in
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before using
    connect_args=connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create tables that do not exist yet"""
    Base.metadata.create_all(bind=engine)
