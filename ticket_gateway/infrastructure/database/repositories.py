"""Data access layer for stored discount selections"""

from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from ticket_gateway.infrastructure.database.models import StoredSelection


class SelectionRepository:
    """Repository for persisted discount checkboxes"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, storage_key: str) -> Optional[Dict[str, Any]]:
        row = self.db.get(StoredSelection, storage_key)
        return row.payload if row is not None else None

    def upsert(self, storage_key: str, payload: Dict[str, Any]) -> None:
        """Insert or overwrite the payload stored under storage_key"""
        row = self.db.get(StoredSelection, storage_key)
        if row is None:
            self.db.add(StoredSelection(storage_key=storage_key, payload=payload))
        else:
            row.payload = payload
        self.db.flush()

    def delete(self, storage_key: str) -> bool:
        row = self.db.get(StoredSelection, storage_key)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True
