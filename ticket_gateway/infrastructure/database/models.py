"""SQLAlchemy ORM models for gateway-side durable storage"""

from sqlalchemy import Column, DateTime, JSON, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class StoredSelection(Base):
    """Discount checkboxes of an in-progress transaction, keyed like browser storage"""

    __tablename__ = "discount_selection"

    storage_key = Column(Text, primary_key=True)  # transaction-{id}-checkboxes
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
