"""HTTP client for a Supabase-compatible REST + storage service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence
from urllib.parse import quote

import httpx

from csync.core.errors import ArtifactUploadError, StoreReadError, StoreWriteError

# No generated or caller-supplied id ever takes this value, so ``id=neq.<it>``
# matches every row.
MATCH_ALL_SENTINEL = "00000000-0000-0000-0000-000000000000"


@dataclass
class SupabaseConfig:
    base_url: str
    api_key: str | None = None


def _describe_http_error(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        detail = exc.response.text.strip()
        if len(detail) > 200:
            detail = detail[:200] + "…"
        return f"HTTP {exc.response.status_code}: {detail or exc.response.reason_phrase}"
    return f"{type(exc).__name__}: {exc}"


class SupabaseClient:
    def __init__(
        self,
        config: SupabaseConfig,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._config = config
        if client is None:
            self._client = httpx.Client(
                base_url=config.base_url,
                timeout=timeout,
            )
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    # ------------------------------------------------------------------
    # Relational interface

    def delete_all(self, table: str) -> None:
        """Delete every row of ``table`` via a never-matching ``neq`` filter."""

        try:
            response = self._client.delete(
                f"/rest/v1/{table}",
                params={"id": f"neq.{MATCH_ALL_SENTINEL}"},
                headers=self._build_headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StoreWriteError(
                f"Failed to purge {table}: {_describe_http_error(exc)}",
                context=f"table={table}",
            ) from exc

    def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        on_conflict: str | None = None,
    ) -> Dict[str, Any]:
        """Insert-or-update ``row`` and return the stored representation."""

        params = {"on_conflict": on_conflict} if on_conflict else None
        try:
            response = self._client.post(
                f"/rest/v1/{table}",
                params=params,
                json=dict(row),
                headers=self._build_headers(prefer="resolution=merge-duplicates,return=representation"),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise StoreWriteError(
                f"Failed to upsert into {table}: {_describe_http_error(exc)}",
                context=f"table={table}",
            ) from exc
        except ValueError as exc:
            raise StoreWriteError(f"Store returned non-JSON payload for {table} upsert", context=f"table={table}") from exc
        return self._first_row(data, table)

    def update(self, table: str, row_id: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Patch the row whose ``id`` equals ``row_id``."""

        try:
            response = self._client.patch(
                f"/rest/v1/{table}",
                params={"id": f"eq.{row_id}"},
                json=dict(values),
                headers=self._build_headers(prefer="return=representation"),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise StoreWriteError(
                f"Failed to update {table} row {row_id}: {_describe_http_error(exc)}",
                context=f"table={table}, id={row_id}",
            ) from exc
        except ValueError as exc:
            raise StoreWriteError(
                f"Store returned non-JSON payload for {table} update",
                context=f"table={table}, id={row_id}",
            ) from exc
        return self._first_row(data, table, row_id=row_id)

    def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order: Sequence[str] = (),
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Rows of ``table`` matching equality ``filters``, sorted ascending by ``order``."""

        params: Dict[str, str] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = ",".join(f"{column}.asc" for column in order)
        try:
            response = self._client.get(
                f"/rest/v1/{table}",
                params=params,
                headers=self._build_headers(),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise StoreReadError(
                f"Failed to read {table}: {_describe_http_error(exc)}",
                context=f"table={table}",
            ) from exc
        except ValueError as exc:
            raise StoreReadError(f"Store returned non-JSON payload for {table} select", context=f"table={table}") from exc
        if not isinstance(data, list):
            raise StoreReadError(f"Expected a list of rows from {table}", context=f"table={table}")
        return data

    # ------------------------------------------------------------------
    # Blob interface

    def upload(self, bucket: str, key: str, data: bytes, *, content_type: str) -> str:
        """Upload (overwriting) ``data`` and return the stored object reference."""

        try:
            response = self._client.post(
                f"/storage/v1/object/{bucket}/{quote(key)}",
                content=data,
                headers={
                    **(self._build_headers() or {}),
                    "Content-Type": content_type,
                    "x-upsert": "true",
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ArtifactUploadError(
                f"Failed to upload {bucket}/{key}: {_describe_http_error(exc)}",
                context=f"bucket={bucket}, key={key}",
            ) from exc
        reference = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                reference = payload.get("Key") or payload.get("key")
        return reference or f"{bucket}/{key}"

    # ------------------------------------------------------------------

    def close(self) -> None:
        if getattr(self, "_owns_client", False):
            self._client.close()

    def _build_headers(self, *, prefer: str | None = None) -> Dict[str, str] | None:
        headers: Dict[str, str] = {}
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers or None

    @staticmethod
    def _first_row(data: Any, table: str, *, row_id: str | None = None) -> Dict[str, Any]:
        rows = data if isinstance(data, list) else [data]
        if not rows or not isinstance(rows[0], dict):
            context = f"table={table}" + (f", id={row_id}" if row_id else "")
            raise StoreWriteError(f"Store returned no row for {table}", context=context)
        return rows[0]

    def __enter__(self) -> "SupabaseClient":  # pragma: no cover - convenience
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - convenience
        self.close()


__all__ = ["MATCH_ALL_SENTINEL", "SupabaseClient", "SupabaseConfig"]
