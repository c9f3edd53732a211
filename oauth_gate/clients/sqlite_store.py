"""SQLite-backed user repository used by the demo application."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path
from typing import Optional

from oauth_gate.models.oauth import OauthProfileRecord, UserRecord
from oauth_gate.schemas import DownloadedProfile


class SQLiteUserStore:
    """Persist local users and their provider profile snapshots."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    given_name TEXT,
                    family_name TEXT,
                    name TEXT
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS users_email ON users (email)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS oauth_profiles (
                    sub TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    profile_json TEXT NOT NULL
                )
                """
            )

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ? ORDER BY rowid LIMIT 1",
                (email,),
            ).fetchone()
        if not row:
            return None
        return UserRecord(**dict(row))

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            return None
        return UserRecord(**dict(row))

    async def add_user_by_email(self, email: str, profile: DownloadedProfile) -> UserRecord:
        user = UserRecord(
            id=uuid.uuid4().hex,
            email=email,
            given_name=profile.given_name,
            family_name=profile.family_name,
            name=profile.name,
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, given_name, family_name, name)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user.id, user.email, user.given_name, user.family_name, user.name),
            )
        return user

    async def get_oauth_profile_by_sub(self, sub: str) -> Optional[OauthProfileRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT sub, user_id, profile_json FROM oauth_profiles WHERE sub = ?",
                (sub,),
            ).fetchone()
        if not row:
            return None
        return OauthProfileRecord(**dict(row))

    async def upsert_oauth_profile(
        self, sub: str, user_id: str, profile_json: str
    ) -> OauthProfileRecord:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO oauth_profiles (sub, user_id, profile_json)
                VALUES (?, ?, ?)
                ON CONFLICT(sub) DO UPDATE SET
                    user_id = excluded.user_id,
                    profile_json = excluded.profile_json
                """,
                (sub, user_id, profile_json),
            )
        return OauthProfileRecord(sub=sub, user_id=user_id, profile_json=profile_json)

    async def update_user_from_oauth_profile(
        self, user_id: str, profile: OauthProfileRecord
    ) -> Optional[UserRecord]:
        """Refresh display names of an existing user from the latest profile."""
        claims = json.loads(profile.profile_json)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE users
                SET given_name = COALESCE(?, given_name),
                    family_name = COALESCE(?, family_name),
                    name = COALESCE(?, name)
                WHERE id = ?
                """,
                (
                    claims.get("given_name"),
                    claims.get("family_name"),
                    claims.get("name"),
                    user_id,
                ),
            )
        return await self.get_user(user_id)


__all__ = ["SQLiteUserStore"]
