"""Supabase ``documents`` table store over the PostgREST HTTP API.

Uses the service-role key, so it must only run server-side (the ingest
handler or the CLI), never in a browser.
"""

from __future__ import annotations

import logging

import httpx

from technodog.exceptions import StorageError
from technodog.storage.base import DocumentStore
from technodog.storage.schemas import DocumentRecord

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "documents"


class SupabaseStore(DocumentStore):
    """Insert chunk records into a Supabase table."""

    def __init__(
        self,
        url: str,
        service_key: str,
        table: str = DEFAULT_TABLE,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        if not url or not service_key:
            raise StorageError("Supabase URL and service key are required")

        self.table = table
        self.base_url = url.rstrip("/") + "/rest/v1"
        self._client = client or httpx.Client(timeout=timeout)
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, record: DocumentRecord) -> str:
        try:
            resp = self._client.post(
                f"{self.base_url}/{self.table}",
                params={"select": "id"},
                json=record.to_row(),
                headers={**self._headers, "Prefer": "return=representation"},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Insert into {self.table} failed with "
                f"{exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Insert into {self.table} failed: {exc}") from exc

        rows = resp.json()
        if not rows:
            raise StorageError(f"Insert into {self.table} returned no rows")
        return str(rows[0]["id"])

    def count(self) -> int:
        try:
            resp = self._client.head(
                f"{self.base_url}/{self.table}",
                params={"select": "id"},
                headers={**self._headers, "Prefer": "count=exact"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(f"Count on {self.table} failed: {exc}") from exc

        # Content-Range: "0-24/3573" or "*/0"
        content_range = resp.headers.get("content-range", "")
        _, _, total = content_range.partition("/")
        return int(total) if total.isdigit() else 0

    def close(self) -> None:
        self._client.close()
