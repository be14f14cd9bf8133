"""
Admin REST API client for the membership platform's data tables.

Only the calls this app needs are wrapped:
    POST   /members/verify-token                        token verification
    POST   /v2/data-tables/{table}/records/query        findMany / findUnique
    POST   /v2/data-tables/{table}/records              create
    GET    /v2/data-tables/{table}/records/{id}         direct read
    PUT    /v2/data-tables/{table}/records/{id}         update
    DELETE /v2/data-tables/{table}/records/{id}         delete

Record bodies use the {data: {...}} envelope. A 404 on a data-table
endpoint means the table does not exist (TableNotFoundError), except on
the direct record read where it means the record is gone.

Transport failures are retried with exponential backoff; HTTP error
responses are not.
"""

import logging
import threading
import time
from typing import Any

import requests

from catalog.config import DEFAULT_ADMIN_URL
from catalog.errors import AdminAPIError, TableNotFoundError
from catalog.records import extract_record, extract_records

log = logging.getLogger(__name__)

PAGE_SIZE    = 100
MAX_RECORDS  = 1000   # hard stop for runaway pagination
TIMEOUT      = 15     # seconds
RETRIES      = 3


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or resp.reason or resp.status_code)
    return resp.reason or f"HTTP {resp.status_code}"


class AdminClient:
    def __init__(
        self,
        secret_key: str,
        app_id: str | None = None,
        base_url: str = DEFAULT_ADMIN_URL,
        session: requests.Session | None = None,
        retries: int = RETRIES,
    ):
        self.base_url = base_url.rstrip("/")
        self.retries  = retries
        self.headers  = {"X-API-KEY": secret_key, "Content-Type": "application/json"}
        if app_id:
            self.headers["X-APP-ID"] = app_id
        self._shared = session
        if session is not None:
            session.headers.update(self.headers)
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """
        The injected session, or one requests.Session per thread.
        Seeding calls create_record from a thread pool and Session is not
        thread-safe.
        """
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            self._local.session = session
        return session

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send a request, retrying transport errors with exponential backoff."""
        url = f"{self.base_url}{path}"
        for attempt in range(self.retries):
            try:
                log.debug("%s %s", method, url)
                return self.session.request(method, url, timeout=TIMEOUT, **kwargs)
            except requests.RequestException as exc:
                log.warning("Admin API request failed (attempt %d/%d) %s %s: %s",
                            attempt + 1, self.retries, method, url, exc)
                if attempt < self.retries - 1:
                    time.sleep(2 ** attempt)
                else:
                    raise AdminAPIError(f"Admin API unreachable: {exc}") from exc
        raise AdminAPIError("Admin API request was not attempted")

    def _table_call(self, table: str, method: str, path: str, **kwargs: Any) -> Any:
        resp = self._request(method, path, **kwargs)
        if resp.status_code == 404:
            raise TableNotFoundError(table, _error_message(resp))
        if not resp.ok:
            raise AdminAPIError(_error_message(resp), resp.status_code)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise AdminAPIError(f"Admin API returned non-JSON body for {path}") from exc

    @staticmethod
    def _records_path(table: str) -> str:
        return f"/v2/data-tables/{table}/records"

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def verify_token(self, token: str) -> dict[str, Any] | None:
        """Return the verified member payload ({id, type, ...}) or None."""
        resp = self._request("POST", "/members/verify-token", json={"token": token})
        if resp.status_code in (400, 401, 403, 404):
            log.info("Token rejected by Admin API (%d)", resp.status_code)
            return None
        if not resp.ok:
            raise AdminAPIError(_error_message(resp), resp.status_code)
        try:
            body = resp.json()
        except ValueError as exc:
            raise AdminAPIError("Admin API returned non-JSON body for /members/verify-token",
                                resp.status_code) from exc
        member = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(member, dict) or not (member.get("id") or member.get("memberId")):
            return None
        return member

    # ------------------------------------------------------------------
    # Data tables
    # ------------------------------------------------------------------

    def query(self, table: str, query: dict[str, Any]) -> Any:
        return self._table_call(table, "POST", f"{self._records_path(table)}/query",
                                json={"query": query})

    def list_records(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        order_by: dict[str, str] | None = None,
        page_size: int = PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Fetch every matching record, following cursors page by page."""
        records: list[dict[str, Any]] = []
        cursor: int | str | None = None

        while True:
            find_many: dict[str, Any] = {"take": page_size}
            if cursor is not None:
                find_many["after"] = cursor
            if where:
                find_many["where"] = where
            if order_by:
                find_many["orderBy"] = order_by

            page, pagination = extract_records(self.query(table, {"findMany": find_many}))
            records.extend(page)

            if not page or len(records) > MAX_RECORDS:
                break
            if pagination is not None:
                end = pagination.get("endCursor")
                if pagination.get("hasMore") is not True or end is None:
                    break
                cursor = end
            else:
                last = page[-1] if isinstance(page[-1], dict) else {}
                end = last.get("internalOrder")
                if len(page) < page_size or end is None:
                    break
                cursor = end
            try:
                cursor = int(cursor)
            except (TypeError, ValueError):
                pass

        log.debug("Fetched %d records from %s", len(records), table)
        return records

    def find_record(self, table: str, record_id: str) -> dict[str, Any] | None:
        """
        Look a record up by id: findUnique, then findMany, then a direct GET.
        Returns None when every route reports the record missing.
        """
        try:
            record = extract_record(self.query(table, {"findUnique": {"where": {"id": record_id}}}))
            if record and record.get("id"):
                return record
        except TableNotFoundError:
            raise
        except AdminAPIError as exc:
            log.info("findUnique failed for %s/%s: %s", table, record_id, exc)

        try:
            found, _ = extract_records(self.query(
                table, {"findMany": {"where": {"id": {"equals": record_id}}, "take": 1}}
            ))
            if found:
                return found[0]
        except TableNotFoundError:
            raise
        except AdminAPIError as exc:
            log.info("findMany failed for %s/%s: %s", table, record_id, exc)

        resp = self._request("GET", f"{self._records_path(table)}/{record_id}")
        if resp.status_code == 404:
            return None
        if not resp.ok:
            message = _error_message(resp)
            if "not found" in message.lower():
                return None
            raise AdminAPIError(message, resp.status_code)
        record = extract_record(resp.json())
        if not record or not record.get("id"):
            return None
        return record

    def create_record(self, table: str, fields: dict[str, Any]) -> dict[str, Any]:
        body = self._table_call(table, "POST", self._records_path(table), json={"data": fields})
        return extract_record(body) or {}

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        body = self._table_call(table, "PUT", f"{self._records_path(table)}/{record_id}",
                                json={"data": fields})
        return extract_record(body) or {}

    def delete_record(self, table: str, record_id: str) -> None:
        self._table_call(table, "DELETE", f"{self._records_path(table)}/{record_id}")

    def table_exists(self, table: str) -> bool:
        try:
            self.query(table, {"findMany": {"take": 1}})
        except TableNotFoundError:
            return False
        return True
