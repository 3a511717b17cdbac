"""
Business logic for users.

Users are the owners of delegation operations.  The first account
registered on a fresh database becomes an administrator; further
administrators are flagged with ``create_admin.py``.
"""

import logging
import sqlite3
from typing import Optional

from ..core.db import get_connection
from ..core.security import hash_password, verify_password
from ..schemas.user import UserCreate, UserRead


logger = logging.getLogger(__name__)


class UserService:
    """Registration, authentication and lookup of users."""

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserRead:
        return UserRead(
            id=row["id"],
            email=row["email"],
            full_name=row["full_name"],
            is_admin=bool(row["is_admin"]),
            disabled=bool(row["disabled"]),
        )

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Create a new user.

        Raises
        ------
        ValueError
            If the e-mail is already registered.
        """
        email = data.email.strip().lower()
        logger.info("Registering user %s", email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            try:
                # First account becomes administrator, decided in the same
                # statement as the insert.
                cursor.execute(
                    "INSERT INTO users (email, full_name, password, is_admin) "
                    "SELECT ?, ?, ?, NOT EXISTS (SELECT 1 FROM users)",
                    (email, data.full_name, hash_password(data.password)),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise ValueError(f"User {email} already exists")
            row = cursor.execute(
                "SELECT id, email, full_name, is_admin, disabled FROM users WHERE id = ?",
                (cursor.lastrowid,),
            ).fetchone()
            conn.commit()
        finally:
            conn.close()
        if row["is_admin"]:
            logger.info("User %s is the first account and was flagged administrator", email)
        return cls._row_to_user(row)

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user when the credentials match, otherwise ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, full_name, password, is_admin, disabled FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        finally:
            conn.close()
        if not row or row["disabled"]:
            return None
        if not verify_password(password, row["password"]):
            logger.warning("Failed login attempt for %s", email)
            return None
        return cls._row_to_user(row)

    @classmethod
    async def get_user(cls, user_id: int) -> Optional[UserRead]:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, full_name, is_admin, disabled FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        finally:
            conn.close()
        return cls._row_to_user(row) if row else None
