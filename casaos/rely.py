"""Storage of application dependency records."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime, timezone

from casaos.models import Rely, _insert, _query


class RelyService:
    """Create, look up and delete dependency records."""

    def __init__(self, db: sqlite3.Connection) -> None:
        self.db = db

    def create(self, rely: Rely) -> Rely:
        """Insert a record; returns it with its id and timestamps filled in."""
        now = datetime.now(timezone.utc)
        stored = replace(
            rely,
            created_at=rely.created_at or now,
            updated_at=rely.updated_at or now,
        )
        new_id = _insert(self.db, Rely.TABLE, stored._columns(), auto_key="id")
        return replace(stored, id=new_id)

    def get_info(self, custom_id: str) -> Rely | None:
        """Return the first record with this custom id, or None."""
        rows = _query(
            self.db,
            f"SELECT * FROM {Rely.TABLE} WHERE custom_id = ? ORDER BY id LIMIT 1",
            (custom_id,),
        )
        return Rely.from_row(rows[0]) if rows else None

    def delete(self, custom_id: str) -> None:
        with self.db:
            self.db.execute(f"DELETE FROM {Rely.TABLE} WHERE custom_id = ?", (custom_id,))