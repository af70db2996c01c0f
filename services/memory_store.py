"""Persistent memory stores consumed by the verification service."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol

import requests

from errors import PersistenceFailure, PersistenceTimeout, RecordNotFoundError


logger = logging.getLogger(__name__)

DEFAULT_TABLE = "memories"


class MemoryStore(Protocol):
    def insert(self, record: Mapping[str, Any]) -> dict[str, Any]: ...

    def fetch(self, record_id: str) -> dict[str, Any]: ...

    def list_all(self) -> list[dict[str, Any]]: ...

    def delete(self, record_id: str) -> bool: ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryMemoryStore:
    """Process-local store used for demos and tests."""

    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rows)

    def insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        record_id = record.get("id")
        if not record_id:
            raise PersistenceFailure("Cannot insert a memory without an id")
        row = copy.deepcopy(dict(record))
        row.setdefault("created_at", _utc_now())
        with self._lock:
            if str(record_id) in self._rows:
                raise PersistenceFailure(f"Memory {record_id!r} already exists")
            self._rows[str(record_id)] = row
        return copy.deepcopy(row)

    def fetch(self, record_id: str) -> dict[str, Any]:
        row = self._rows.get(str(record_id))
        if row is None:
            raise RecordNotFoundError(str(record_id))
        return copy.deepcopy(row)

    def update(self, record_id: str, changes: Mapping[str, Any]) -> dict[str, Any]:
        with self._lock:
            row = self._rows.get(str(record_id))
            if row is None:
                raise RecordNotFoundError(str(record_id))
            row.update(copy.deepcopy(dict(changes)))
            return copy.deepcopy(row)

    def list_all(self) -> list[dict[str, Any]]:
        rows = [copy.deepcopy(row) for row in self._rows.values()]
        rows.sort(key=lambda row: str(row.get("created_at") or ""))
        return rows

    def delete(self, record_id: str) -> bool:
        with self._lock:
            return self._rows.pop(str(record_id), None) is not None


@dataclass
class SupabaseMemoryStore:
    """PostgREST client for the Supabase ``memories`` table."""

    base_url: str
    api_key: str
    table: str = DEFAULT_TABLE
    timeout: float = 10
    session: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.session is None:
            self.session = requests

    def _headers(self, *, representation: bool = False) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if representation:
            headers["Prefer"] = "return=representation"
        return headers

    @property
    def _endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _request(self, method: str, **kwargs: Any) -> requests.Response:
        try:
            response = self.session.request(method, self._endpoint, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.Timeout as exc:
            logger.error("Supabase %s %s timed out after %ss", method.upper(), self.table, self.timeout)
            raise PersistenceTimeout(f"Memory store timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            logger.error("Supabase %s %s failed: %s", method.upper(), self.table, exc)
            raise PersistenceFailure(f"Memory store request failed: {exc}") from exc
        return response

    @staticmethod
    def _rows(response: requests.Response) -> list[dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise PersistenceFailure("Memory store returned invalid JSON") from exc
        if isinstance(payload, Mapping):
            return [dict(payload)]
        if isinstance(payload, list):
            return [dict(row) for row in payload if isinstance(row, Mapping)]
        return []

    def insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        response = self._request("post", json=[dict(record)], headers=self._headers(representation=True))
        rows = self._rows(response)
        if not rows:
            raise PersistenceFailure("Memory store returned no row for insert")
        return rows[0]

    def fetch(self, record_id: str) -> dict[str, Any]:
        response = self._request(
            "get",
            params={"id": f"eq.{record_id}", "select": "*"},
            headers=self._headers(),
        )
        rows = self._rows(response)
        if not rows:
            raise RecordNotFoundError(str(record_id))
        return rows[0]

    def list_all(self) -> list[dict[str, Any]]:
        response = self._request(
            "get",
            params={"select": "*", "order": "created_at.asc"},
            headers=self._headers(),
        )
        return self._rows(response)

    def delete(self, record_id: str) -> bool:
        response = self._request(
            "delete",
            params={"id": f"eq.{record_id}"},
            headers=self._headers(representation=True),
        )
        return bool(self._rows(response))


__all__ = ["DEFAULT_TABLE", "InMemoryMemoryStore", "MemoryStore", "SupabaseMemoryStore"]
