import logging
from typing import Any, Dict, List, Optional

import requests

from demo_builder.errors import NotFoundError, PersistenceError
from demo_builder.models import DemoRecord

TABLE = "demos"


class RecordStore:
    """CRUD over the Supabase `demos` table through its PostgREST endpoint."""

    def __init__(self, url: Optional[str], service_key: Optional[str],
                 table: str = TABLE, session: Optional[requests.Session] = None):
        self.url = url.rstrip('/') if url else None
        self.service_key = service_key
        self.table = table
        self.session = session or requests.Session()

    def _endpoint(self) -> str:
        if not self.url or not self.service_key:
            raise PersistenceError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        return f"{self.url}/rest/v1/{self.table}"

    def _headers(self, **extra: str) -> Dict[str, str]:
        return {
            "apikey": self.service_key or "",
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
            **extra
        }

    def _request(self, method: str, operation: str, **kwargs) -> requests.Response:
        endpoint = self._endpoint()
        try:
            response = self.session.request(method, endpoint, **kwargs)
        except requests.RequestException as e:
            raise PersistenceError(f"Record store {operation} failed: {e}")
        if not 200 <= response.status_code < 300:
            raise PersistenceError(f"Record store {operation} failed: {response.status_code} {response.text[:200]}")
        return response

    def insert(self, record: DemoRecord) -> DemoRecord:
        response = self._request(
            "POST", "insert",
            headers=self._headers(Prefer="return=representation"),
            json=record.to_row()
        )
        try:
            rows: List[Dict[str, Any]] = response.json() or []
        except ValueError:
            logging.warning(f"Record store insert returned no representation: {response.status_code}")
            rows = []
        stored = DemoRecord.from_row(rows[0]) if rows else record
        logging.info(f"Stored demo {stored.id} for user {stored.user_id}")
        return stored

    def list_by_owner(self, user_id: str) -> List[DemoRecord]:
        response = self._request(
            "GET", "list",
            headers=self._headers(),
            params={"user_id": f"eq.{user_id}", "order": "created_at.desc", "select": "*"}
        )
        return [DemoRecord.from_row(row) for row in response.json()]

    def get(self, demo_id: str) -> DemoRecord:
        """Fetch one demo; NotFoundError when absent."""
        endpoint = self._endpoint()
        try:
            response = self.session.request(
                "GET", endpoint,
                headers=self._headers(),
                params={"id": f"eq.{demo_id}", "select": "*"}
            )
        except requests.RequestException as e:
            raise PersistenceError(f"Record store lookup failed: {e}")

        # PostgREST answers 400 for ids that are not valid UUIDs
        if response.status_code == 400:
            raise NotFoundError(f"Demo not found: {demo_id}")
        if not 200 <= response.status_code < 300:
            raise PersistenceError(f"Record store lookup failed: {response.status_code} {response.text[:200]}")
        rows = response.json()
        if not rows:
            raise NotFoundError(f"Demo not found: {demo_id}")
        return DemoRecord.from_row(rows[0])

    def delete(self, demo_id: str) -> None:
        self._request(
            "DELETE", "delete",
            headers=self._headers(),
            params={"id": f"eq.{demo_id}"}
        )
        logging.info(f"Deleted demo record {demo_id}")
