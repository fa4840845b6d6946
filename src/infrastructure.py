"""
infrastructure.py

Concrete implementations of all repository interfaces and the Unit of Work.

Two backends are provided:

  In-memory  – plain Python dicts keyed by UUID.  Suitable for local
               development, demos, and tests without a database.
  REST       – a PostgREST-compatible HTTP store (the REST surface a hosted
               Postgres exposes under /rest/v1), reached through httpx.

Both implement the same Abstract* interfaces from application.py; api.py
receives whichever one main.py wires into get_uow():

    app.dependency_overrides[get_uow] = lambda: RestUnitOfWork(client)

Nothing in service.py, application.py, or api.py needs to change.
"""

from __future__ import annotations

import copy
import dataclasses
import typing
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

import httpx
import structlog

from application import (
    AbstractCategoryRepository,
    AbstractEquipmentRepository,
    AbstractJournalEntryRepository,
    AbstractLocationRepository,
    AbstractOperatorRepository,
    AbstractSessionRepository,
    AbstractShiftHandoverRepository,
    AbstractUnitOfWork,
    StateError,
    TransportError,
)
from model import (
    Category,
    Equipment,
    JournalEntry,
    Location,
    Operator,
    OperatorSession,
    ShiftHandover,
)

logger = structlog.get_logger(__name__)


# ===========================================================================
# IN-MEMORY BACKEND
# ===========================================================================

# ---------------------------------------------------------------------------
# Generic in-memory store
# ---------------------------------------------------------------------------

class _Store(dict):
    """
    A plain dict with typed get/save helpers.

    Reads hand out copies, so a use case that fails halfway through never
    leaves a half-mutated record behind: only save() changes the store.
    """

    def fetch(self, key: uuid.UUID):
        obj = self.get(key)
        return copy.deepcopy(obj) if obj is not None else None

    def put(self, obj) -> None:
        self[obj.id] = copy.deepcopy(obj)

    def all(self) -> list:
        return [copy.deepcopy(obj) for obj in self.values()]


# ---------------------------------------------------------------------------
# Shared in-memory database (module-level singleton)
# Persists for the lifetime of the process; restarting uvicorn resets it.
# ---------------------------------------------------------------------------

class InMemoryDatabase:
    def __init__(self):
        self.categories: _Store = _Store()
        self.equipment:  _Store = _Store()
        self.locations:  _Store = _Store()
        self.entries:    _Store = _Store()
        self.handovers:  _Store = _Store()
        self.operators:  _Store = _Store()
        self.sessions:   _Store = _Store()


_db = InMemoryDatabase()


# ---------------------------------------------------------------------------
# Repository implementations
# ---------------------------------------------------------------------------

class InMemoryCategoryRepository(AbstractCategoryRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, category_id):       return self._s.fetch(category_id)
    def list_all(self):               return self._s.all()
    def save(self, category):         self._s.put(category)


class InMemoryEquipmentRepository(AbstractEquipmentRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, equipment_id):      return self._s.fetch(equipment_id)
    def list_all(self):               return self._s.all()
    def save(self, equipment):        self._s.put(equipment)


class InMemoryLocationRepository(AbstractLocationRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, location_id):       return self._s.fetch(location_id)
    def list_all(self):               return self._s.all()
    def save(self, location):         self._s.put(location)


class InMemoryJournalEntryRepository(AbstractJournalEntryRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, entry_id):          return self._s.fetch(entry_id)
    def list_all(self):               return self._s.all()
    def save(self, entry):            self._s.put(entry)


class InMemoryShiftHandoverRepository(AbstractShiftHandoverRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, handover_id):       return self._s.fetch(handover_id)
    def list_all(self):               return self._s.all()
    def save(self, handover):         self._s.put(handover)


class InMemoryOperatorRepository(AbstractOperatorRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, operator_id):       return self._s.fetch(operator_id)
    def get_by_email(self, email):
        return next((o for o in self._s.all() if o.email == email), None)
    def save(self, operator):         self._s.put(operator)


class InMemorySessionRepository(AbstractSessionRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, session_id):        return self._s.fetch(session_id)
    def save(self, session):          self._s.put(session)


# ---------------------------------------------------------------------------
# Unit of Work
# ---------------------------------------------------------------------------

class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Wraps all in-memory repositories.  commit() and rollback() are no-ops
    because save() writes immediately and nothing is saved before the
    guards have passed.
    """

    def __init__(self, db: InMemoryDatabase = _db):
        self.categories = InMemoryCategoryRepository(db.categories)
        self.equipment  = InMemoryEquipmentRepository(db.equipment)
        self.locations  = InMemoryLocationRepository(db.locations)
        self.entries    = InMemoryJournalEntryRepository(db.entries)
        self.handovers  = InMemoryShiftHandoverRepository(db.handovers)
        self.operators  = InMemoryOperatorRepository(db.operators)
        self.sessions   = InMemorySessionRepository(db.sessions)

    def commit(self)   -> None: pass   # no-op for in-memory
    def rollback(self) -> None: pass   # no-op for in-memory


# ===========================================================================
# REST BACKEND (PostgREST-compatible)
# ===========================================================================

# ---------------------------------------------------------------------------
# Row codec
# ---------------------------------------------------------------------------

def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _unwrap_optional(hint):
    if typing.get_origin(hint) is typing.Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _decode(value: Any, hint) -> Any:
    if value is None:
        return None
    hint = _unwrap_optional(hint)
    if hint is uuid.UUID:
        return uuid.UUID(str(value))
    if hint is datetime:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if hint is date:
        return date.fromisoformat(str(value)[:10])
    if isinstance(hint, type) and issubclass(hint, Enum):
        return hint(value)
    return value


def to_row(obj) -> Dict[str, Any]:
    """Serialise a model dataclass to a JSON-ready row."""
    return {f.name: _encode(getattr(obj, f.name)) for f in dataclasses.fields(obj)}


def from_row(cls: Type, row: Dict[str, Any]):
    """Build a model dataclass from a row; unknown columns are ignored."""
    hints = typing.get_type_hints(cls)
    kwargs = {
        f.name: _decode(row[f.name], hints[f.name])
        for f in dataclasses.fields(cls)
        if f.name in row
    }
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

class PostgrestClient:
    """
    Minimal client for the PostgREST table API.

        GET    /rest/v1/<table>?select=*&order=<col>.<dir>
        POST   /rest/v1/<table>                  (insert)
        PATCH  /rest/v1/<table>?id=eq.<id>&<col>=eq.<v>  (guarded update)

    Every failed round trip, whether a network error or a non-2xx
    response, is raised as TransportError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, table: str, **kwargs) -> List[Dict[str, Any]]:
        try:
            response = self._client.request(method, f"/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("store_request_failed", method=method, table=table,
                         status_code=exc.response.status_code)
            raise TransportError(
                f"Store rejected {method} {table}: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("store_unreachable", method=method, table=table, error=str(exc))
            raise TransportError(f"Store request {method} {table} failed: {exc}") from exc
        if not response.content:
            return []
        return response.json()

    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, str] = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{_encode(value)}"
        if order:
            params["order"] = order
        return self._request("GET", table, params=params)

    def insert(self, table: str, row: Dict[str, Any]) -> None:
        self._request("POST", table, json=row, headers={"Prefer": "return=minimal"})

    def update(
        self,
        table: str,
        row_id: uuid.UUID,
        patch: Dict[str, Any],
        match: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        PATCH one row, scoped by id plus every `match` column.

        Returns the number of rows the store actually changed; 0 means the
        row no longer satisfies `match` (or is gone).
        """
        params = {"id": f"eq.{row_id}"}
        for column, value in (match or {}).items():
            params[column] = "is.null" if value is None else f"eq.{_encode(value)}"
        rows = self._request(
            "PATCH", table,
            params=params,
            json=patch,
            headers={"Prefer": "return=representation"},
        )
        return len(rows)


# ---------------------------------------------------------------------------
# Repository implementations
# ---------------------------------------------------------------------------

class _RestTable:
    """
    Shared get/list/save over one table.

    save() inserts records this repository has never read and updates the
    ones it has, so a record loaded by a use case is PATCHed in place.
    An update sends only the columns that changed since the read, and is
    scoped by the `guarded` columns as they were read: if another writer
    moved the row on in between, nothing matches and save() raises
    StateError instead of overwriting the newer state.
    """

    table = ""
    model: Type = object
    order: Optional[str] = None
    guarded: Tuple[str, ...] = ()

    def __init__(self, client: PostgrestClient):
        self._c = client
        self._read: Dict[uuid.UUID, Dict[str, Any]] = {}

    def _load(self, rows):
        records = [from_row(self.model, row) for row in rows]
        for record in records:
            self._read[record.id] = to_row(record)
        return records

    def get(self, record_id):
        records = self._load(self._c.select(self.table, {"id": record_id}))
        return records[0] if records else None

    def list_all(self):
        return self._load(self._c.select(self.table, order=self.order))

    def save(self, record) -> None:
        row = to_row(record)
        before = self._read.get(record.id)
        if before is None:
            self._c.insert(self.table, row)
        else:
            patch = {k: v for k, v in row.items() if k != "id" and before.get(k) != v}
            if not patch:
                return
            match = {column: before[column] for column in self.guarded}
            if self._c.update(self.table, record.id, patch, match) == 0:
                logger.warning("store_write_conflict", table=self.table,
                               record_id=str(record.id), match=match)
                raise StateError(
                    f"{self.model.__name__} {record.id} was changed by another "
                    f"request; reload it and retry."
                )
        self._read[record.id] = row


class RestCategoryRepository(_RestTable, AbstractCategoryRepository):
    table, model, order = "categories", Category, "sort_order.asc"


class RestEquipmentRepository(_RestTable, AbstractEquipmentRepository):
    table, model, order = "equipment", Equipment, "name.asc"


class RestLocationRepository(_RestTable, AbstractLocationRepository):
    table, model, order = "locations", Location, "name.asc"


class RestJournalEntryRepository(_RestTable, AbstractJournalEntryRepository):
    table, model, order = "journal_entries", JournalEntry, "created_at.desc"
    guarded = ("status", "author_id")


class RestShiftHandoverRepository(_RestTable, AbstractShiftHandoverRepository):
    table, model, order = "shift_handovers", ShiftHandover, "shift_date.desc,created_at.desc"
    guarded = ("status", "outgoing_operator_id")


class RestOperatorRepository(_RestTable, AbstractOperatorRepository):
    table, model = "operators", Operator

    def get_by_email(self, email):
        records = self._load(self._c.select(self.table, {"email": email}))
        return records[0] if records else None


class RestSessionRepository(_RestTable, AbstractSessionRepository):
    table, model = "operator_sessions", OperatorSession


# ---------------------------------------------------------------------------
# Unit of Work
# ---------------------------------------------------------------------------

class RestUnitOfWork(AbstractUnitOfWork):
    """
    Wraps the REST repositories.  Each save() is its own HTTP request, so
    commit() and rollback() have nothing to flush; a use case that fails
    its guards raises before issuing any write, and a write whose guarded
    columns changed since the read matches no row and raises StateError.
    """

    def __init__(self, client: PostgrestClient):
        self.categories = RestCategoryRepository(client)
        self.equipment  = RestEquipmentRepository(client)
        self.locations  = RestLocationRepository(client)
        self.entries    = RestJournalEntryRepository(client)
        self.handovers  = RestShiftHandoverRepository(client)
        self.operators  = RestOperatorRepository(client)
        self.sessions   = RestSessionRepository(client)

    def commit(self)   -> None: pass
    def rollback(self) -> None: pass
