"""Shared pytest fixtures for monetrix tests.

The Supabase client is replaced by :class:`FakeSupabaseClient`, an
in-memory stand-in for the PostgREST query builder and the
``update_account_balance`` stored procedure.  The local SQLite store is a
real file under ``tmp_path``.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

import pytest

import monetrix.config as config_module
from monetrix.config import AppConfig
from monetrix.database import DatabaseManager
from monetrix.logger import StructuredLogger
from monetrix.models.user import User
from monetrix.schema import initialize_schema
from monetrix.services import create_services


# ---------------------------------------------------------------------------
# In-memory Supabase
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


def _comparable(value):
    """Numbers compare as Decimal, everything else as text."""
    if isinstance(value, bool) or value is None:
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return str(value)


class FakeQuery:
    def __init__(self, client, table):
        self._client = client
        self._table = table
        self._action = "select"
        self._payload = None
        self._filters = []
        self._orders = []
        self._range = None
        self._single = False

    # -- actions --------------------------------------------------------

    def select(self, *columns, count=None):
        self._action = "select"
        return self

    def insert(self, payload):
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._action = "update"
        self._payload = payload
        return self

    def delete(self):
        self._action = "delete"
        return self

    # -- filters --------------------------------------------------------

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def gte(self, column, value):
        self._filters.append(
            lambda row: row.get(column) is not None
            and _comparable(row[column]) >= _comparable(value)
        )
        return self

    def lte(self, column, value):
        self._filters.append(
            lambda row: row.get(column) is not None
            and _comparable(row[column]) <= _comparable(value)
        )
        return self

    def lt(self, column, value):
        self._filters.append(
            lambda row: row.get(column) is not None
            and _comparable(row[column]) < _comparable(value)
        )
        return self

    def or_(self, expression):
        clauses = []
        for clause in expression.split(","):
            column, operator, pattern = clause.split(".", 2)
            assert operator == "ilike"
            clauses.append((column, pattern.strip("%").lower()))
        self._filters.append(
            lambda row: any(
                needle in (row.get(column) or "").lower() for column, needle in clauses
            )
        )
        return self

    def order(self, column, desc=False):
        self._orders.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def maybe_single(self):
        self._single = True
        return self

    # -- execution ------------------------------------------------------

    def execute(self):
        if (self._table, self._action) in self._client.failing:
            raise ConnectionError(f"{self._action} on {self._table} refused")

        rows = self._client.tables.setdefault(self._table, [])
        if self._action == "insert":
            now = datetime.now(timezone.utc).isoformat()
            row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
            row.update(self._payload)
            rows.append(row)
            return FakeResponse([dict(row)])

        matched = [row for row in rows if all(f(row) for f in self._filters)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in matched])

        if self._action == "delete":
            self._client.tables[self._table] = [r for r in rows if r not in matched]
            return FakeResponse([dict(row) for row in matched])

        for column, desc in reversed(self._orders):
            matched.sort(key=lambda row: str(row.get(column) or ""), reverse=desc)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._client.max_rows is not None:
            matched = matched[:self._client.max_rows]
        if self._single:
            return FakeResponse(dict(matched[0]) if matched else None)
        return FakeResponse([dict(row) for row in matched], count=len(matched))


class FakeRpc:
    def __init__(self, client, name, params):
        self._client = client
        self._name = name
        self._params = params

    def execute(self):
        if self._client.fail_rpc or self._params["account_id"] in self._client.failing_accounts:
            raise ConnectionError("connection reset by peer")
        assert self._name == "update_account_balance"
        self._client.rpc_calls.append(dict(self._params))
        for row in self._client.tables.get("accounts", []):
            if row["id"] == self._params["account_id"]:
                balance = Decimal(row["balance"]) + Decimal(self._params["amount_change"])
                row["balance"] = format(balance, "f")
                return FakeResponse(None)
        raise LookupError(f"account {self._params['account_id']} not found")


class FakeSupabaseClient:
    """Just enough of ``supabase.Client`` for the repositories."""

    def __init__(self):
        self.tables = {}
        self.rpc_calls = []
        self.fail_rpc = False
        self.failing_accounts = set()
        self.failing = set()
        self.max_rows = None

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)

    def balance_of(self, account_id):
        for row in self.tables.get("accounts", []):
            if row["id"] == account_id:
                return Decimal(row["balance"])
        raise LookupError(account_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True, scope="session")
def _isolated_config(tmp_path_factory):
    """Keep log output out of the working directory."""
    log_dir = tmp_path_factory.mktemp("logs")
    config_module._config_instance = AppConfig(LOG_FILE=str(log_dir / "monetrix.log"))
    yield
    config_module._config_instance = None


@pytest.fixture
def supabase():
    return FakeSupabaseClient()


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(LOCAL_DB_PATH=tmp_path / "local.db")


@pytest.fixture
def db(supabase, app_config):
    """DatabaseManager over the fake client and a temporary SQLite file."""
    manager = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=app_config.LOCAL_DB_PATH,
        logger=StructuredLogger(name="test.database"),
        supabase_client=supabase,
    )
    initialize_schema(manager.sqlite, StructuredLogger(name="test.schema"))
    yield manager
    manager.close()


@pytest.fixture
def services(db, app_config):
    return create_services(db=db, config=app_config)


@pytest.fixture
def user():
    return User(id=str(uuid.uuid4()), email="ana@example.com", name="Ana")


@pytest.fixture
def other_user():
    return User(id=str(uuid.uuid4()), email="bruno@example.com", name="Bruno")


@pytest.fixture
def make_account(services, user):
    """Create an account through the service and return it."""

    def _make(name="Conta Corrente", type="checking", initial_balance="1000.00", **extra):
        result = services["account_service"].create_account(
            user,
            {"name": name, "type": type, "initial_balance": initial_balance, **extra},
        )
        assert result.success, result.error
        return result.data

    return _make


@pytest.fixture
def make_transaction(services, user):
    """Create a transaction through the service and return it."""

    def _make(account, amount="50.00", type="expense", **extra):
        payload = {
            "type": type,
            "amount": amount,
            "account_id": account.id,
            "date": "2026-10-10",
            "description": "test",
        }
        payload.update(extra)
        result = services["transaction_service"].create_transaction(user, payload)
        assert result.success, result.error
        return result.data

    return _make
