"""
In-memory stand-ins for the Supabase client and an aiohttp session.

FakeSupabaseClient implements the slice of the supabase-py builder API the
repositories use: select/insert/upsert/update/delete, eq, is_, or_ (ilike
only), order, limit, execute, rpc, and storage.from_(bucket) with
upload/remove/get_public_url. Embedded selects like ``*, plant_details(*)``
are resolved from the ``<name>_id`` column.
"""

import copy
import re
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError

BASE_TIME = datetime(2024, 5, 1, tzinfo=timezone.utc)
EMBED_PATTERN = re.compile(r"(\w+)\(\*\)")
PRIMARY_KEYS = {"plant_search_cache": "query"}


@dataclass
class FakeResponse:
    data: Any = None
    count: Optional[int] = None


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that returns immediately and remembers requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload: Any = None
        self._filters = []
        self._orders: List[Tuple[str, bool]] = []
        self._limit: Optional[int] = None

    # builder ------------------------------------------------------------

    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self._columns = columns
        return self

    def insert(self, payload) -> "FakeQuery":
        self._op, self._payload = "insert", payload
        return self

    def upsert(self, payload) -> "FakeQuery":
        self._op, self._payload = "upsert", payload
        return self

    def update(self, payload) -> "FakeQuery":
        self._op, self._payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def is_(self, column: str, value) -> "FakeQuery":
        assert value in ("null", None)
        self._filters.append(lambda row: row.get(column) is None)
        return self

    def or_(self, expression: str) -> "FakeQuery":
        clauses = []
        for clause in expression.split(","):
            column, operator, pattern = clause.split(".", 2)
            assert operator == "ilike"
            clauses.append((column, pattern.strip("%").lower()))
        self._filters.append(
            lambda row: any(term in str(row.get(column) or "").lower() for column, term in clauses)
        )
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._orders.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    # execution ----------------------------------------------------------

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(check(row) for check in self._filters)

    def execute(self) -> FakeResponse:
        self._client.calls.append((self._table, self._op))
        self._client.raise_if_failing(self._table, self._op)

        with self._client.lock:
            rows = self._client.tables.setdefault(self._table, [])
            handler = getattr(self, f"_run_{self._op}")
            return FakeResponse(data=copy.deepcopy(handler(rows)))

    def _run_select(self, rows):
        result = [row for row in rows if self._matches(row)]
        for column, desc in reversed(self._orders):
            result.sort(key=lambda row: (row.get(column) is None, row.get(column) or ""), reverse=desc)
        if self._limit is not None:
            result = result[:self._limit]
        return [self._client.embed(row, self._columns) for row in result]

    def _run_insert(self, rows):
        payloads = self._payload if isinstance(self._payload, list) else [self._payload]
        created = [self._client.new_row(payload) for payload in payloads]
        rows.extend(created)
        return created

    def _run_upsert(self, rows):
        key = PRIMARY_KEYS.get(self._table, "id")
        payloads = self._payload if isinstance(self._payload, list) else [self._payload]
        result = []
        for payload in payloads:
            existing = next((row for row in rows if key in payload and row.get(key) == payload[key]), None)
            if existing is not None:
                existing.update(payload)
                result.append(existing)
            else:
                row = self._client.new_row(payload)
                rows.append(row)
                result.append(row)
        return result

    def _run_update(self, rows):
        updated = [row for row in rows if self._matches(row)]
        for row in updated:
            row.update(self._payload)
        return updated

    def _run_delete(self, rows):
        removed = [row for row in rows if self._matches(row)]
        rows[:] = [row for row in rows if not self._matches(row)]
        return removed


class FakeRpc:
    def __init__(self, client: "FakeSupabaseClient", name: str, params):
        self._client = client
        self._name = name
        self._params = params

    def execute(self) -> FakeResponse:
        self._client.calls.append(("rpc", self._name))
        self._client.raise_if_failing("rpc", self._name)
        return FakeResponse(data=None)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self._storage = storage
        self.name = name

    @property
    def files(self) -> Dict[str, bytes]:
        return self._storage.files.setdefault(self.name, {})

    def upload(self, path: str, file: bytes, file_options: Optional[Dict[str, str]] = None):
        if self._storage.fail_uploads:
            raise RuntimeError("storage unavailable")
        if path in self.files:
            raise RuntimeError("The resource already exists")
        self.files[path] = file
        self._storage.options[(self.name, path)] = dict(file_options or {})
        return {"Key": f"{self.name}/{path}"}

    def remove(self, paths: List[str]):
        if self._storage.fail_removes:
            raise RuntimeError("storage unavailable")
        self._storage.removed.extend((self.name, path) for path in paths)
        for path in paths:
            self.files.pop(path, None)
        return [{"name": path} for path in paths]

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/{self.name}/{path}?"


class FakeStorage:
    def __init__(self):
        self.files: Dict[str, Dict[str, bytes]] = {}
        self.options: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.removed: List[Tuple[str, str]] = []
        self.fail_uploads = False
        self.fail_removes = False

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabaseClient:
    """Table rows live in ``tables``; every executed query is appended to ``calls``."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.calls: List[Tuple[str, str]] = []
        self.storage = FakeStorage()
        self.lock = threading.Lock()
        self._failures: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self._tick = 0

    # setup --------------------------------------------------------------

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        created = [self.new_row(row) for row in rows]
        self.tables.setdefault(table, []).extend(created)
        return created

    def fail(self, table: str, op: str, code: str = "XX000", message: str = "boom", times: Optional[int] = None):
        """Make ``op`` on ``table`` raise APIError, forever or for ``times`` calls."""
        self._failures[(table, op)] = {"code": code, "message": message, "remaining": times}

    def heal(self, table: str, op: str) -> None:
        self._failures.pop((table, op), None)

    def raise_if_failing(self, table: str, op: str) -> None:
        with self.lock:
            failure = self._failures.get((table, op))
            if failure is None:
                return
            if failure["remaining"] is not None:
                failure["remaining"] -= 1
                if failure["remaining"] <= 0:
                    del self._failures[(table, op)]
        raise APIError({"message": failure["message"], "code": failure["code"], "details": None, "hint": None})

    def count_calls(self, table: str, op: str = "select") -> int:
        return sum(1 for call in self.calls if call == (table, op))

    # helpers used by FakeQuery ------------------------------------------

    def new_row(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._tick += 1
        row = dict(payload)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", (BASE_TIME + timedelta(seconds=self._tick)).isoformat())
        return row

    def embed(self, row: Dict[str, Any], columns: str) -> Dict[str, Any]:
        result = dict(row)
        for name in EMBED_PATTERN.findall(columns):
            foreign_id = row.get(f"{name}_id")
            result[name] = next(
                (dict(other) for other in self.tables.get(name, []) if other.get("id") == foreign_id),
                None,
            )
        return result

    # supabase-py surface ------------------------------------------------

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params=None) -> FakeRpc:
        return FakeRpc(self, name, params)


# =============================================================================
# aiohttp
# =============================================================================

class FakeHTTPResponse:
    def __init__(self, status: int = 200, json_data: Any = None, text: str = "",
                 headers: Optional[Dict[str, str]] = None):
        self.status = status
        self._json = json_data
        self._text = text
        self.headers = headers or {}

    async def json(self, content_type=None):
        if self._json is None:
            raise ValueError("not json")
        return self._json

    async def text(self) -> str:
        return self._text


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeHTTPSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, *outcomes) -> None:
        self.outcomes.extend(outcomes)

    def request(self, method: str, url: str, **kwargs) -> _RequestContext:
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self.outcomes:
            raise AssertionError(f"Unexpected request: {method} {url}")
        return _RequestContext(self.outcomes.pop(0))

    async def close(self) -> None:
        self.closed = True
