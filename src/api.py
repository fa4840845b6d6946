"""
api.py

REST API layer for the Shift Journal (operational log and shift handover
tracker).

Framework : FastAPI
Auth      : Bearer token.  The token is resolved to a Caller by the
            get_current_caller dependency (ResolveCallerUseCase); every
            lifecycle endpoint passes that Caller into its use case
            command, so authorship and ownership rules are enforced
            server-side.

Structure
---------
  Routers (all prefixed under /api/v1)
  ├── /auth               sign-up, sign-in, sign-out, current operator
  ├── /categories         category reference data (+ move up/down)
  ├── /equipment          equipment reference data
  ├── /locations          location reference data
  ├── /entries            journal entries (create, cancel, list, stats)
  ├── /handovers          shift handovers (create, accept, complete, cancel)
  └── /reports/entries    entry report download (docx, xlsx, csv, json)

Error handling
--------------
  ValidationError     → 422
  NotFoundError       → 404
  AuthorizationError  → 403
  StateError          → 409
  TransportError      → 502
  AuthenticationError → 401
  ApplicationError    → 400
  Unhandled           → 500 (FastAPI default)

Response envelope
-----------------
  Success  : { "data": <payload> }
  Error    : { "detail": "<message>" }
  Reports are returned as file downloads, not wrapped.

Running
-------
  uvicorn main:app --reload
"""

from __future__ import annotations

import dataclasses
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, Optional
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi_mcp import FastApiMCP
from pydantic import BaseModel, Field

from application import (
    # Exceptions
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StateError,
    TransportError,
    ValidationError,
    AbstractUnitOfWork,
    # Use-case commands
    AcceptHandoverCommand,
    CancelEntryCommand,
    CancelHandoverCommand,
    CompleteHandoverCommand,
    CreateCategoryCommand,
    CreateEntryCommand,
    CreateHandoverCommand,
    CreateNamedRecordCommand,
    GenerateEntryReportCommand,
    MoveCategoryCommand,
    SignInCommand,
    SignUpCommand,
    UpdateCategoryCommand,
    UpdateNamedRecordCommand,
    # Use-case classes
    AcceptHandoverUseCase,
    CancelEntryUseCase,
    CancelHandoverUseCase,
    CompleteHandoverUseCase,
    CreateCategoryUseCase,
    CreateEntryUseCase,
    CreateEquipmentUseCase,
    CreateHandoverUseCase,
    CreateLocationUseCase,
    EntryStatsUseCase,
    GenerateEntryReportUseCase,
    GetCurrentOperatorUseCase,
    GetEntryUseCase,
    GetHandoverUseCase,
    HandoverStatsUseCase,
    ListCategoriesUseCase,
    ListEntriesUseCase,
    ListEquipmentUseCase,
    ListHandoversUseCase,
    ListLocationsUseCase,
    MoveCategoryUseCase,
    ResolveCallerUseCase,
    SignInUseCase,
    SignOutUseCase,
    SignUpUseCase,
    UpdateCategoryUseCase,
    UpdateEquipmentUseCase,
    UpdateLocationUseCase,
)
from config import settings
from filters import EntryFilter, HandoverFilter
from infrastructure import InMemoryUnitOfWork
from logging_config import RequestIdMiddleware
from model import Caller, EntryStatus, GroupBy, HandoverStatus, Priority, ShiftType
from reports import DEFAULT_TITLE, ReportFormat, ReportOptions

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# App bootstrap
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the store client main.py attached to app.state, if any."""
    yield
    client = getattr(app.state, "store_client", None)
    if client is not None:
        client.close()
        logger.info("store_client_closed")


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description=(
        "REST API for the operational shift journal: timestamped log entries "
        "with cancellation audit, shift handovers between operators, "
        "reference data, and entry report export."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    StateError: status.HTTP_409_CONFLICT,
    TransportError: status.HTTP_502_BAD_GATEWAY,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ApplicationError: status.HTTP_400_BAD_REQUEST,
}


async def application_error_handler(request: Request, exc: ApplicationError):
    status_code = next(
        code for error, code in _STATUS_BY_ERROR.items() if isinstance(exc, error)
    )
    logger.warning(
        "request_rejected",
        method=request.method,
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
        status_code=status_code,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


for _error in _STATUS_BY_ERROR:
    app.add_exception_handler(_error, application_error_handler)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_uow() -> AbstractUnitOfWork:
    """Returns the in-memory Unit of Work; main.py overrides it per backend."""
    return InMemoryUnitOfWork()


_bearer = HTTPBearer(auto_error=False)


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_caller(
    token: Optional[str] = Depends(get_token),
    uow: AbstractUnitOfWork = Depends(get_uow),
) -> Caller:
    """
    Resolve the bearer token into the acting operator.

    Runs on the event loop so operator_id is bound in the request context
    that the endpoint's worker thread copies; the store lookup itself goes
    to the threadpool.
    """
    caller = await run_in_threadpool(ResolveCallerUseCase().execute, token, uow)
    structlog.contextvars.bind_contextvars(operator_id=str(caller.id))
    return caller


def entry_filter_params(
    category_id: Optional[uuid.UUID] = Query(None),
    status: Optional[EntryStatus] = Query(None),
    priority: Optional[Priority] = Query(None),
    equipment_id: Optional[uuid.UUID] = Query(None),
    location_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive text search"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
) -> EntryFilter:
    return EntryFilter(
        category_id=category_id,
        status=status,
        priority=priority,
        equipment_id=equipment_id,
        location_id=location_id,
        search_text=search,
        date_from=date_from,
        date_to=date_to,
    )


def handover_filter_params(
    status: Optional[HandoverStatus] = Query(None),
    shift_type: Optional[ShiftType] = Query(None),
    operator: Optional[str] = Query(None, description="Outgoing or incoming operator name"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
) -> HandoverFilter:
    return HandoverFilter(
        status=status,
        shift_type=shift_type,
        operator=operator,
        date_from=date_from,
        date_to=date_to,
    )


# ---------------------------------------------------------------------------
# Envelope helper
# ---------------------------------------------------------------------------

def _ok(data: Any) -> Dict:
    """Wrap a DTO or list of DTOs in the standard success envelope."""
    if dataclasses.is_dataclass(data):
        return {"data": dataclasses.asdict(data)}
    if isinstance(data, list):
        return {
            "data": [
                dataclasses.asdict(item) if dataclasses.is_dataclass(item) else item
                for item in data
            ]
        }
    return {"data": data}


# ===========================================================================
# REQUEST BODY SCHEMAS  (Pydantic v2)
# ===========================================================================

# ---------------------------------------------------------------------------
# Auth schemas
# ---------------------------------------------------------------------------

class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)
    full_name: Optional[str] = Field(default=None, max_length=200)


class SignInRequest(BaseModel):
    email: str
    password: str


# ---------------------------------------------------------------------------
# Reference data schemas
# ---------------------------------------------------------------------------

class CreateCategoryRequest(BaseModel):
    code: str = Field(..., max_length=100)
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    sort_order: int = 0


class UpdateCategoryRequest(BaseModel):
    code: Optional[str] = Field(default=None, max_length=100)
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class MoveCategoryRequest(BaseModel):
    direction: str = Field(..., description="One of: up, down")


class CreateNamedRecordRequest(BaseModel):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None


class UpdateNamedRecordRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    is_active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Journal schemas
# ---------------------------------------------------------------------------

class CreateEntryRequest(BaseModel):
    category_id: Optional[uuid.UUID] = None
    title: str = ""
    description: str = ""
    status: EntryStatus = EntryStatus.ACTIVE
    priority: Priority = Priority.MEDIUM
    equipment_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None


class CancelEntryRequest(BaseModel):
    reason: str = ""
    cancelled_by: Optional[str] = Field(
        default=None, description="Defaults to the current operator's display name."
    )


# ---------------------------------------------------------------------------
# Handover schemas
# ---------------------------------------------------------------------------

class CreateHandoverRequest(BaseModel):
    shift_date: Optional[date] = None
    shift_type: Optional[ShiftType] = None
    ongoing_works: Optional[str] = None
    special_instructions: Optional[str] = None
    incidents: Optional[str] = None


class AcceptHandoverRequest(BaseModel):
    notes: Optional[str] = None


# ===========================================================================
# ROUTERS
# ===========================================================================

api_v1 = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

auth_router = APIRouter(prefix="/auth", tags=["Auth"])


@auth_router.post("/sign-up", status_code=status.HTTP_201_CREATED, summary="Register an operator")
def sign_up(body: SignUpRequest, uow: AbstractUnitOfWork = Depends(get_uow)):
    cmd = SignUpCommand(email=body.email, password=body.password, full_name=body.full_name)
    return _ok(SignUpUseCase(settings.admin_email_list).execute(cmd, uow))


@auth_router.post("/sign-in", summary="Sign in and obtain a bearer token")
def sign_in(body: SignInRequest, uow: AbstractUnitOfWork = Depends(get_uow)):
    cmd = SignInCommand(email=body.email, password=body.password)
    return _ok(SignInUseCase().execute(cmd, uow))


@auth_router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, summary="Revoke the session")
def sign_out(
    token: Optional[str] = Depends(get_token),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    SignOutUseCase().execute(token, uow)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@auth_router.get("/me", summary="Current operator")
def me(
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetCurrentOperatorUseCase().execute(caller, uow))


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

category_router = APIRouter(prefix="/categories", tags=["Categories"])


@category_router.get("", summary="List categories ordered by sort_order")
def list_categories(
    active_only: bool = Query(False),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(ListCategoriesUseCase().execute(uow, active_only=active_only))


@category_router.post("", status_code=status.HTTP_201_CREATED, summary="Create a category (admin)")
def create_category(
    body: CreateCategoryRequest,
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CreateCategoryCommand(
        code=body.code,
        name=body.name,
        description=body.description,
        sort_order=body.sort_order,
        caller=caller,
    )
    return _ok(CreateCategoryUseCase().execute(cmd, uow))


@category_router.patch("/{category_id}", summary="Update or (de)activate a category (admin)")
def update_category(
    body: UpdateCategoryRequest,
    category_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = UpdateCategoryCommand(category_id=category_id, caller=caller, **body.model_dump())
    return _ok(UpdateCategoryUseCase().execute(cmd, uow))


@category_router.post("/{category_id}/move", summary="Move a category up or down (admin)")
def move_category(
    body: MoveCategoryRequest,
    category_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = MoveCategoryCommand(category_id=category_id, direction=body.direction, caller=caller)
    return _ok(MoveCategoryUseCase().execute(cmd, uow))


# ---------------------------------------------------------------------------
# Equipment & Locations
# ---------------------------------------------------------------------------

def _named_record_router(prefix: str, tag: str, list_uc, create_uc, update_uc) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", summary=f"List {tag.lower()} ordered by name")
    def list_records(
        active_only: bool = Query(False),
        caller: Caller = Depends(get_current_caller),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        return _ok(list_uc().execute(uow, active_only=active_only))

    @router.post("", status_code=status.HTTP_201_CREATED, summary=f"Create {tag.lower()} (admin)")
    def create_record(
        body: CreateNamedRecordRequest,
        caller: Caller = Depends(get_current_caller),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        cmd = CreateNamedRecordCommand(name=body.name, description=body.description, caller=caller)
        return _ok(create_uc().execute(cmd, uow))

    @router.patch("/{record_id}", summary=f"Update or (de)activate {tag.lower()} (admin)")
    def update_record(
        body: UpdateNamedRecordRequest,
        record_id: uuid.UUID = Path(...),
        caller: Caller = Depends(get_current_caller),
        uow: AbstractUnitOfWork = Depends(get_uow),
    ):
        cmd = UpdateNamedRecordCommand(record_id=record_id, caller=caller, **body.model_dump())
        return _ok(update_uc().execute(cmd, uow))

    return router


equipment_router = _named_record_router(
    "/equipment", "Equipment",
    ListEquipmentUseCase, CreateEquipmentUseCase, UpdateEquipmentUseCase,
)
location_router = _named_record_router(
    "/locations", "Locations",
    ListLocationsUseCase, CreateLocationUseCase, UpdateLocationUseCase,
)


# ---------------------------------------------------------------------------
# Journal entries
# ---------------------------------------------------------------------------

entry_router = APIRouter(prefix="/entries", tags=["Journal Entries"])


@entry_router.get("", summary="List entries, newest first")
def list_entries(
    filters: EntryFilter = Depends(entry_filter_params),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(ListEntriesUseCase().execute(uow, filters))


@entry_router.get("/stats", summary="Entry counters for the current filter")
def entry_stats(
    filters: EntryFilter = Depends(entry_filter_params),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(EntryStatsUseCase().execute(uow, filters))


@entry_router.get("/{entry_id}", summary="Get a single entry")
def get_entry(
    entry_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetEntryUseCase().execute(entry_id, uow))


@entry_router.post("", status_code=status.HTTP_201_CREATED, summary="Record a new entry")
def create_entry(
    body: CreateEntryRequest,
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Create a journal entry authored by the current operator.  Category,
    title and description are required; the entry starts as draft or active.
    """
    cmd = CreateEntryCommand(caller=caller, **body.model_dump())
    return _ok(CreateEntryUseCase().execute(cmd, uow))


@entry_router.post("/{entry_id}/cancel", summary="Cancel an entry (author only)")
def cancel_entry(
    body: CancelEntryRequest,
    entry_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Cancel an entry with a mandatory reason.  Only the entry's author may
    cancel it, and a cancelled entry cannot be cancelled again.
    """
    cmd = CancelEntryCommand(
        entry_id=entry_id,
        reason=body.reason,
        cancelled_by=body.cancelled_by,
        caller=caller,
    )
    return _ok(CancelEntryUseCase().execute(cmd, uow))


# ---------------------------------------------------------------------------
# Shift handovers
# ---------------------------------------------------------------------------

handover_router = APIRouter(prefix="/handovers", tags=["Shift Handovers"])


@handover_router.get("", summary="List handovers by shift date, newest first")
def list_handovers(
    filters: HandoverFilter = Depends(handover_filter_params),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(ListHandoversUseCase().execute(uow, filters))


@handover_router.get("/stats", summary="Handover counters for the current filter")
def handover_stats(
    filters: HandoverFilter = Depends(handover_filter_params),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(HandoverStatsUseCase().execute(uow, filters))


@handover_router.get("/{handover_id}", summary="Get a single handover")
def get_handover(
    handover_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetHandoverUseCase().execute(handover_id, uow))


@handover_router.post("", status_code=status.HTTP_201_CREATED, summary="Open a pending handover")
def create_handover(
    body: CreateHandoverRequest,
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CreateHandoverCommand(caller=caller, **body.model_dump())
    return _ok(CreateHandoverUseCase().execute(cmd, uow))


@handover_router.post("/{handover_id}/accept", summary="Accept a handover (incoming operator)")
def accept_handover(
    body: AcceptHandoverRequest,
    handover_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = AcceptHandoverCommand(handover_id=handover_id, caller=caller, notes=body.notes)
    return _ok(AcceptHandoverUseCase().execute(cmd, uow))


@handover_router.post("/{handover_id}/complete", summary="Complete a handover (outgoing operator)")
def complete_handover(
    handover_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CompleteHandoverCommand(handover_id=handover_id, caller=caller)
    return _ok(CompleteHandoverUseCase().execute(cmd, uow))


@handover_router.post("/{handover_id}/cancel", summary="Cancel a handover (outgoing operator)")
def cancel_handover(
    handover_id: uuid.UUID = Path(...),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CancelHandoverCommand(handover_id=handover_id, caller=caller)
    return _ok(CancelHandoverUseCase().execute(cmd, uow))


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

report_router = APIRouter(prefix="/reports", tags=["Reports"])


@report_router.get("/entries", summary="Download an entry report")
def download_entry_report(
    format: ReportFormat = Query(ReportFormat.XLSX),
    title: str = Query(DEFAULT_TITLE),
    group_by: GroupBy = Query(GroupBy.NONE),
    include_stats: bool = Query(True),
    include_filters: bool = Query(True),
    filters: EntryFilter = Depends(entry_filter_params),
    caller: Caller = Depends(get_current_caller),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Export the entries matching the given filter.  The file name carries
    the generation date; non-ASCII names are sent using RFC 5987 encoding.
    """
    cmd = GenerateEntryReportCommand(
        format=format,
        caller=caller,
        filters=filters,
        options=ReportOptions(
            title=title,
            include_stats=include_stats,
            include_filters=include_filters,
            group_by=group_by,
        ),
    )
    report = GenerateEntryReportUseCase().execute(cmd, uow)
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(report.filename)}"
        },
    )


# ===========================================================================
# REGISTER ROUTERS
# ===========================================================================

api_v1.include_router(auth_router)
api_v1.include_router(category_router)
api_v1.include_router(equipment_router)
api_v1.include_router(location_router)
api_v1.include_router(entry_router)
api_v1.include_router(handover_router)
api_v1.include_router(report_router)

app.include_router(api_v1)

# ---------------------------------------------------------------------------
# MCP Server: exposes all API routes as MCP tools
# Accessible at: http://localhost:8000/mcp
# ---------------------------------------------------------------------------
if settings.mcp_enabled:
    mcp = FastApiMCP(app)
    mcp.mount()


# ===========================================================================
# HEALTH CHECK
# ===========================================================================

@app.get("/health", tags=["Health"], summary="Service health check")
def health():
    return {"status": "ok", "environment": settings.environment}


# ===========================================================================
# OPENAPI CUSTOMISATION: tag order and descriptions
# ===========================================================================

tags_metadata = [
    {
        "name": "Health",
        "description": "Liveness probe.",
    },
    {
        "name": "Auth",
        "description": (
            "Operator registration and sign-in.  Sign-in returns a bearer token "
            "that every other endpoint requires; sign-out revokes it."
        ),
    },
    {
        "name": "Categories",
        "description": (
            "Journal entry categories.  Ordered by sort_order and reordered by "
            "moving a category up or down.  Only administrators may change them."
        ),
    },
    {
        "name": "Equipment",
        "description": "Equipment an entry may refer to.  Administrators maintain the list.",
    },
    {
        "name": "Locations",
        "description": "Locations an entry may refer to.  Administrators maintain the list.",
    },
    {
        "name": "Journal Entries",
        "description": (
            "Append-only operational log.  Entries are never edited; the author "
            "may cancel an entry once, with a reason, and the cancellation is kept "
            "as an audit trail."
        ),
    },
    {
        "name": "Shift Handovers",
        "description": (
            "Transfer of responsibility between shifts.  A pending handover is "
            "either accepted by the incoming operator, completed directly by the "
            "outgoing operator, or cancelled by the outgoing operator."
        ),
    },
    {
        "name": "Reports",
        "description": "Entry report export as Word, Excel, CSV, or JSON.",
    },
]

app.openapi_tags = tags_metadata
