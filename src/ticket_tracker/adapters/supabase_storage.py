"""Supabase-backed key-value storage."""

from dataclasses import dataclass

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from ticket_tracker.services.store import (
    StorageAccessError,
    StorageBackend,
    StorageError,
    StorageQuotaError,
)

# disk_full, program_limit_exceeded
_QUOTA_CODES = {"53100", "54000"}


@dataclass
class SupabaseStorage(StorageBackend):
    """Supabase implementation of raw key-value storage."""

    client: Client
    table: str = "kv_store"

    def get_item(self, key: str) -> str | None:
        """Return the stored text for a key, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select("key, value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            raise _translate(exc) from exc
        if not response.data:
            return None
        value = response.data[0].get("value")
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        """Insert or replace the row for a key."""
        try:
            self.client.table(self.table).upsert(
                {"key": key, "value": value}
            ).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise _translate(exc) from exc

    def remove_item(self, key: str) -> None:
        """Delete the row for a key."""
        try:
            self.client.table(self.table).delete().eq("key", key).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise _translate(exc) from exc

    def clear(self) -> None:
        """Delete every row in the table."""
        try:
            self.client.table(self.table).delete().neq("key", "").execute()
        except (APIError, httpx.HTTPError) as exc:
            raise _translate(exc) from exc

    def keys(self) -> list[str]:
        """Return all stored keys."""
        try:
            response = self.client.table(self.table).select("key").execute()
        except (APIError, httpx.HTTPError) as exc:
            raise _translate(exc) from exc
        return [str(row["key"]) for row in response.data or [] if "key" in row]


def _translate(exc: Exception) -> StorageError:
    code = getattr(exc, "code", None)
    if isinstance(exc, APIError) and code in _QUOTA_CODES:
        return StorageQuotaError(str(exc))
    return StorageAccessError(str(exc))
