from __future__ import annotations

import os
import threading
import uuid
from datetime import UTC, datetime
from typing import Any

from postgrest.exceptions import APIError
from psycopg2 import errors as pg_errors
from supabase import Client

from src.domain.entities.user import FIELD_MAP, UserEntity
from src.domain.errors import (
    DuplicateKeyError,
    InvalidUserIdError,
    UserNotFoundError,
    UserValidationError,
)
from src.domain.services.user_validator import normalize_fields, validate_user
from src.infrastructure.database.postgres_client import PostgresClient, get_postgres_client

# Postgres SQLSTATE for unique_violation, also surfaced by PostgREST
UNIQUE_VIOLATION = "23505"


def _parse_id(user_id: str) -> str:
    try:
        return str(uuid.UUID(str(user_id)))
    except (TypeError, ValueError) as exc:
        raise InvalidUserIdError() from exc


def _editable(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in normalize_fields(fields).items() if key in FIELD_MAP}


class UserRepository:
    """Persistence gateway for the ``users`` collection.

    Backend is chosen like the other repositories: local PostgreSQL when
    ``USE_LOCAL_DB=1``, an in-memory dict when Supabase is disabled or no
    client is given, otherwise the Supabase table.
    """

    def __init__(self, client: Client | None, pg_client: PostgresClient | None = None) -> None:
        self.client = client
        self.table = os.getenv("SUPABASE_USERS_TABLE", "users")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = pg_client or (get_postgres_client() if self.use_local_db else None)
        self._mem: dict[str, UserEntity] = {}
        self._lock = threading.Lock()

    @property
    def backend(self) -> str:
        if self.use_local_db and self.pg_client:
            return "postgres"
        if self.disabled or self.client is None:
            return "memory"
        return "supabase"

    def _row_to_entity(self, row: dict) -> UserEntity:
        """Convert a database row to UserEntity."""
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        updated_at = row.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        return UserEntity(
            id=str(row["id"]),
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            phone_number=row["phone_number"],
            gender=row["gender"],
            profile_picture=row.get("profile_picture"),
            created_at=created_at,
            updated_at=updated_at,
        )

    @staticmethod
    def _to_row(fields: dict[str, Any]) -> dict[str, Any]:
        return {FIELD_MAP[key]: value for key, value in fields.items() if key in FIELD_MAP}

    def _email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        return any(
            u.email == email and u.id != exclude_id for u in self._mem.values()
        )

    def insert(self, fields: dict[str, Any]) -> UserEntity:
        candidate = _editable(fields)
        candidate.setdefault("profilePicture", None)
        violations = validate_user(candidate)
        if violations:
            raise UserValidationError(violations)
        now = datetime.now(UTC)
        row = self._to_row(candidate)

        if self.backend == "postgres":
            columns = ", ".join((*row.keys(), "created_at", "updated_at"))
            placeholders = ", ".join(["%s"] * (len(row) + 2))
            query = f"INSERT INTO users ({columns}) VALUES ({placeholders}) RETURNING *"
            try:
                stored = self.pg_client.execute_one(query, (*row.values(), now, now))
            except pg_errors.UniqueViolation as exc:
                raise DuplicateKeyError() from exc
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL insert user failed: {exc}") from exc
            return self._row_to_entity(stored)

        if self.backend == "memory":
            with self._lock:
                if self._email_taken(row["email"]):
                    raise DuplicateKeyError()
                entity = UserEntity(id=str(uuid.uuid4()), created_at=now, updated_at=now, **row)
                self._mem[entity.id] = entity
            return entity

        try:  # pragma: no cover - network
            payload = {**row, "created_at": now.isoformat(), "updated_at": now.isoformat()}
            res = self.client.table(self.table).insert(payload).execute()
            return self._row_to_entity(res.data[0])
        except APIError as exc:  # pragma: no cover
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateKeyError() from exc
            raise RuntimeError(f"DB insert user failed: {exc}") from exc

    def find_all(self) -> list[UserEntity]:
        if self.backend == "postgres":
            try:
                rows = self.pg_client.execute_many("SELECT * FROM users ORDER BY created_at")
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL list users failed: {exc}") from exc
            return [self._row_to_entity(r) for r in rows]

        if self.backend == "memory":
            with self._lock:
                items = list(self._mem.values())
            return sorted(items, key=lambda u: u.created_at)

        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("*").order("created_at").execute()
            return [self._row_to_entity(r) for r in (res.data or [])]
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB list users failed: {exc}") from exc

    def find_by_id(self, user_id: str) -> UserEntity | None:
        user_id = _parse_id(user_id)
        if self.backend == "postgres":
            try:
                row = self.pg_client.execute_one("SELECT * FROM users WHERE id = %s", (user_id,))
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL get user failed: {exc}") from exc
            return self._row_to_entity(row) if row else None

        if self.backend == "memory":
            return self._mem.get(user_id)

        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("*").eq("id", user_id).limit(1).execute()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB get user failed: {exc}") from exc
        rows = res.data or []  # pragma: no cover
        return self._row_to_entity(rows[0]) if rows else None  # pragma: no cover

    def find_by_email(self, email: str) -> UserEntity | None:
        if self.backend == "postgres":
            try:
                row = self.pg_client.execute_one("SELECT * FROM users WHERE email = %s", (email,))
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL get user by email failed: {exc}") from exc
            return self._row_to_entity(row) if row else None

        if self.backend == "memory":
            with self._lock:
                return next((u for u in self._mem.values() if u.email == email), None)

        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("*").eq("email", email).limit(1).execute()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB get user by email failed: {exc}") from exc
        rows = res.data or []  # pragma: no cover
        return self._row_to_entity(rows[0]) if rows else None  # pragma: no cover

    def update_by_id(self, user_id: str, changes: dict[str, Any]) -> UserEntity:
        """Merge ``changes`` into the stored record and re-validate the result."""
        current = self.find_by_id(user_id)
        if current is None:
            raise UserNotFoundError()
        merged = current.merged(_editable(changes))
        violations = validate_user(merged.to_fields())
        if violations:
            raise UserValidationError(violations)
        now = datetime.now(UTC)
        row = self._to_row(merged.to_fields())

        if self.backend == "postgres":
            assignments = ", ".join(f"{col} = %s" for col in row)
            query = f"UPDATE users SET {assignments}, updated_at = %s WHERE id = %s RETURNING *"
            try:
                stored = self.pg_client.execute_one(query, (*row.values(), now, current.id))
            except pg_errors.UniqueViolation as exc:
                raise DuplicateKeyError() from exc
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL update user failed: {exc}") from exc
            if stored is None:
                raise UserNotFoundError()
            return self._row_to_entity(stored)

        if self.backend == "memory":
            with self._lock:
                if current.id not in self._mem:
                    raise UserNotFoundError()
                if self._email_taken(merged.email, exclude_id=current.id):
                    raise DuplicateKeyError()
                updated = UserEntity(id=current.id, created_at=current.created_at, updated_at=now, **row)
                self._mem[current.id] = updated
            return updated

        try:  # pragma: no cover - network
            payload = {**row, "updated_at": now.isoformat()}
            res = self.client.table(self.table).update(payload).eq("id", current.id).execute()
        except APIError as exc:  # pragma: no cover
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateKeyError() from exc
            raise RuntimeError(f"DB update user failed: {exc}") from exc
        if not res.data:  # pragma: no cover
            raise UserNotFoundError()
        return self._row_to_entity(res.data[0])  # pragma: no cover

    def delete_by_id(self, user_id: str) -> None:
        user_id = _parse_id(user_id)
        if self.backend == "postgres":
            try:
                affected = self.pg_client.execute_update("DELETE FROM users WHERE id = %s", (user_id,))
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL delete user failed: {exc}") from exc
            if not affected:
                raise UserNotFoundError()
            return

        if self.backend == "memory":
            with self._lock:
                if self._mem.pop(user_id, None) is None:
                    raise UserNotFoundError()
            return

        try:  # pragma: no cover - network
            res = self.client.table(self.table).delete().eq("id", user_id).execute()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB delete user failed: {exc}") from exc
        if not res.data:  # pragma: no cover
            raise UserNotFoundError()

    def count(self) -> int:
        if self.backend == "postgres":
            try:
                row = self.pg_client.execute_one("SELECT COUNT(*) AS n FROM users")
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL count users failed: {exc}") from exc
            return int(row["n"]) if row else 0
        if self.backend == "memory":
            return len(self._mem)
        try:  # pragma: no cover - network
            res = self.client.table(self.table).select("id", count="exact").execute()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"DB count users failed: {exc}") from exc
        return res.count or 0  # pragma: no cover
