"""
Service layer for per-user preferences.

Preferences are typed key/value pairs stored in ``user_preferences``
and scoped to the caller.  They hold small pieces of UI state that
used to live in the browser, for example whether the onboarding form
has already been shown (``has_seen_onboarding``).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.db import get_connection
from ..core.errors import NotFoundError
from ..core.security import require_caller
from ..schemas.preference import PreferenceRead


logger = logging.getLogger(__name__)


ONBOARDING_SEEN_KEY = "has_seen_onboarding"


class PreferenceService:
    """Read and write the caller's preferences."""

    @classmethod
    async def list_preferences(cls, current_user: Optional[Dict[str, Any]]) -> List[PreferenceRead]:
        """Return all preferences of the caller, ordered by key."""
        caller = require_caller(current_user, "read preferences")
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT key, value, type, updated_at FROM user_preferences WHERE user_id = ? ORDER BY key",
                (caller["user_id"],),
            ).fetchall()
        finally:
            conn.close()
        return [cls._row_to_preference(row) for row in rows]

    @classmethod
    async def get_preference(cls, key: str, current_user: Optional[Dict[str, Any]]) -> PreferenceRead:
        """Return one preference of the caller.

        Raises
        ------
        NotFoundError
            If the caller never stored ``key``.
        """
        caller = require_caller(current_user, "read preferences")
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT key, value, type, updated_at FROM user_preferences WHERE user_id = ? AND key = ?",
                (caller["user_id"], key),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"Preference {key} not set")
        return cls._row_to_preference(row)

    @classmethod
    async def set_preference(
        cls,
        key: str,
        value: Any,
        type_str: str,
        current_user: Optional[Dict[str, Any]],
    ) -> PreferenceRead:
        """Insert or update a preference of the caller.

        Raises ``ValueError`` when ``value`` cannot be converted to
        ``type_str``.
        """
        caller = require_caller(current_user, "update preferences")
        serialized = cls._serialize(value, type_str)
        updated_at = datetime.now(timezone.utc).isoformat()
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO user_preferences (user_id, key, value, type, updated_at) VALUES (?, ?, ?, ?, ?)"
                " ON CONFLICT(user_id, key) DO UPDATE SET value = excluded.value,"
                " type = excluded.type, updated_at = excluded.updated_at",
                (caller["user_id"], key, serialized, type_str, updated_at),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s set preference %s", caller["user_id"], key)
        return PreferenceRead(
            key=key,
            value=cls._deserialize(serialized, type_str),
            type=type_str,
            updated_at=updated_at,
        )

    @classmethod
    def _row_to_preference(cls, row) -> PreferenceRead:
        return PreferenceRead(
            key=row["key"],
            value=cls._deserialize(row["value"], row["type"]),
            type=row["type"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _serialize(value: Any, type_str: str) -> str:
        """Serialize a Python value to a string based on type."""
        if type_str == "int":
            return str(int(value))
        if type_str == "float":
            return str(float(value))
        if type_str == "bool":
            if isinstance(value, str):
                return "0" if value.strip().lower() in {"0", "false", "no", ""} else "1"
            return "1" if bool(value) else "0"
        return str(value)

    @staticmethod
    def _deserialize(value: str, type_str: str) -> Any:
        """Deserialize a string back to a Python value based on type."""
        if type_str == "int":
            return int(value)
        if type_str == "float":
            return float(value)
        if type_str == "bool":
            return value not in {"0", "false", "False", ""}
        return value
