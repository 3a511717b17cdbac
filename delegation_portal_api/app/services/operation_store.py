"""
SQLite-backed store for delegation operations.

The store exposes exactly the four primitives the service layer needs
(``create``, ``find_unique``, ``find_many``, ``update``).  Each call
opens its own connection and performs a single statement, so every
service operation costs one round trip per primitive it uses.  Any
``sqlite3.Error`` raised here propagates to the caller unchanged.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, List, Optional

from delegation_portal_api.app.core.db import get_connection
from delegation_portal_api.app.schemas.operation import OperationRead


_COLUMNS = (
    "id, user_id, name, client_name, type, operation_type, status, "
    "form_data, notes, created_at, updated_at"
)

# Only the status and the modification timestamp may change after creation.
_UPDATABLE = {"status", "updated_at"}


class OperationStore:
    """Persistence primitives for the ``delegation_operations`` table."""

    @staticmethod
    def _row_to_operation(row: sqlite3.Row) -> OperationRead:
        form_data: Dict[str, Any] = {}
        if row["form_data"]:
            form_data = json.loads(row["form_data"])
        return OperationRead(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            client_name=row["client_name"],
            type=row["type"],
            operation_type=row["operation_type"],
            status=row["status"],
            form_data=form_data,
            notes=row["notes"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @classmethod
    def create(cls, record: Dict[str, Any]) -> OperationRead:
        """Insert ``record`` and return it as stored.

        ``record`` must carry every column; ``form_data`` is a mapping
        and is serialised to JSON text.
        """
        form_data = json.dumps(record["form_data"], ensure_ascii=False, default=str)
        conn = get_connection()
        try:
            conn.execute(
                f"INSERT INTO delegation_operations ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record["id"],
                    record["user_id"],
                    record["name"],
                    record["client_name"],
                    record["type"],
                    record["operation_type"],
                    record["status"],
                    form_data,
                    record["notes"],
                    record["created_at"],
                    record["updated_at"],
                ),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return OperationRead(**{**record, "form_data": json.loads(form_data)})

    @classmethod
    def find_unique(cls, operation_id: str) -> Optional[OperationRead]:
        """Return the operation with ``operation_id`` or ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM delegation_operations WHERE id = ?",
                (operation_id,),
            ).fetchone()
        finally:
            conn.close()
        return cls._row_to_operation(row) if row else None

    @classmethod
    def find_many(cls, user_id: Any, limit: Optional[int] = None) -> List[OperationRead]:
        """Return the operations owned by ``user_id``, newest first.

        Rows created within the same timestamp keep insertion order
        (latest first) through the implicit ``rowid``.
        """
        query = (
            f"SELECT {_COLUMNS} FROM delegation_operations WHERE user_id = ? "
            "ORDER BY created_at DESC, rowid DESC"
        )
        params: list = [user_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        conn = get_connection()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
        finally:
            conn.close()
        return [cls._row_to_operation(row) for row in rows]

    @classmethod
    def update(cls, operation_id: str, patch: Dict[str, Any]) -> Optional[OperationRead]:
        """Apply ``patch`` to one operation and return the updated record.

        Returns ``None`` when no row matched.  Keys outside the
        updatable columns raise ``ValueError``.
        """
        unknown = set(patch) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update immutable fields: {', '.join(sorted(unknown))}")
        if not patch:
            return cls.find_unique(operation_id)
        assignments = ", ".join(f"{column} = ?" for column in patch)
        conn = get_connection()
        try:
            cursor = conn.execute(
                f"UPDATE delegation_operations SET {assignments} WHERE id = ?",
                (*patch.values(), operation_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM delegation_operations WHERE id = ?",
                (operation_id,),
            ).fetchone()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return cls._row_to_operation(row)
