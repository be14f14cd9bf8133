import itertools

import pytest
from fastapi.testclient import TestClient

from api.deps import get_admin_client, get_token_verifier
from app.app import app
from catalog.errors import AdminAPIError, TableNotFoundError
from catalog.repository import COURSES_TABLE, LESSONS_TABLE

ALICE = "mem_alice"
BOB = "mem_bob"

TOKENS = {
    "tok-alice": {"id": ALICE, "type": "member"},
    "tok-bob": {"id": BOB, "type": "member"},
}


class FakeAdminClient:
    """In-memory stand-in for memberstack.client.AdminClient."""

    def __init__(self):
        self.tables: dict[str, dict[str, dict]] = {COURSES_TABLE: {}, LESSONS_TABLE: {}}
        self.fail_with: AdminAPIError | None = None
        self.updates: list[tuple[str, dict]] = []
        self._ids = itertools.count(1)

    def _table(self, table: str) -> dict[str, dict]:
        if self.fail_with is not None:
            raise self.fail_with
        if table not in self.tables:
            raise TableNotFoundError(table)
        return self.tables[table]

    def add(self, table: str, record_id: str, **fields) -> None:
        self.tables[table][record_id] = {"id": record_id, "data": fields}

    # -- AdminClient surface -------------------------------------------------

    def verify_token(self, token: str):
        if token == "tok-boom":
            raise AdminAPIError("verification service down", 502)
        return TOKENS.get(token)

    def list_records(self, table, where=None, order_by=None):
        rows = list(self._table(table).values())
        for key, cond in (where or {}).items():
            rows = [r for r in rows if r["data"].get(key) == cond["equals"]]
        if order_by:
            (key, direction), = order_by.items()
            rows.sort(key=lambda r: r["data"].get(key, 0), reverse=(direction == "desc"))
        return rows

    def find_record(self, table, record_id):
        return self._table(table).get(record_id)

    def create_record(self, table, fields):
        rows = self._table(table)
        record_id = f"rec_{next(self._ids)}"
        rows[record_id] = {"id": record_id, "data": dict(fields)}
        return {"id": record_id}

    def update_record(self, table, record_id, fields):
        rows = self._table(table)
        self.updates.append((record_id, dict(fields)))
        rows[record_id]["data"].update(fields)
        return rows[record_id]

    def delete_record(self, table, record_id):
        self._table(table).pop(record_id, None)

    def table_exists(self, table):
        return table in self.tables


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("MEMBERSTACK_SECRET_KEY", "sk_test")
    monkeypatch.setenv("MEMBERSTACK_APP_ID", "app_test")
    monkeypatch.setenv("CATALOG_LOG_DIR", str(tmp_path))


@pytest.fixture
def admin():
    return FakeAdminClient()


@pytest.fixture
def client(env, admin):
    """FastAPI test client wired to the in-memory Admin client."""
    app.dependency_overrides[get_admin_client] = lambda: admin
    app.dependency_overrides[get_token_verifier] = lambda: admin
    yield TestClient(app)
    app.dependency_overrides.clear()
