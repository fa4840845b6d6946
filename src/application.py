"""
application.py

Application layer for the Shift Journal.

Overview
--------
The application layer sits between the presentation layer (API) and the
domain / service layer.  It is responsible for:

  1. Defining clean output DTOs (dataclasses) that carry only the data
     the presentation layer needs; no raw domain objects are leaked upward.
  2. Declaring abstract Repository interfaces so that the application layer
     remains persistence-agnostic (implementations live in infrastructure.py).
  3. Declaring the UnitOfWork abstraction so that every lifecycle operation
     is a single atomic write.
  4. Implementing Use Case handlers, one class per user-facing operation,
     that load the affected records, run the service guard, and persist.
  5. Owning the error taxonomy every caller sees.

Structure
---------
Errors
    ApplicationError
    ValidationError, NotFoundError, AuthorizationError, StateError,
    TransportError, AuthenticationError

DTOs
    CategoryDTO, EquipmentDTO, LocationDTO
    EntryDTO, EntryStatsDTO
    HandoverDTO, HandoverStatsDTO
    OperatorDTO, SessionDTO

Repository interfaces
    AbstractCategoryRepository
    AbstractEquipmentRepository
    AbstractLocationRepository
    AbstractJournalEntryRepository
    AbstractShiftHandoverRepository
    AbstractOperatorRepository
    AbstractSessionRepository

Unit of Work
    AbstractUnitOfWork

Use Cases
    --- Operators & sessions ---
    SignUpUseCase, SignInUseCase, SignOutUseCase
    ResolveCallerUseCase, GetCurrentOperatorUseCase

    --- Reference data ---
    CreateCategoryUseCase, UpdateCategoryUseCase, MoveCategoryUseCase
    ListCategoriesUseCase
    CreateEquipmentUseCase, UpdateEquipmentUseCase, ListEquipmentUseCase
    CreateLocationUseCase, UpdateLocationUseCase, ListLocationsUseCase

    --- Journal entries ---
    CreateEntryUseCase, CancelEntryUseCase
    GetEntryUseCase, ListEntriesUseCase, EntryStatsUseCase

    --- Shift handovers ---
    CreateHandoverUseCase, AcceptHandoverUseCase
    CompleteHandoverUseCase, CancelHandoverUseCase
    GetHandoverUseCase, ListHandoversUseCase, HandoverStatsUseCase

    --- Reports ---
    GenerateEntryReportUseCase

Design notes
------------
- Required fields are checked before the unit of work is opened, so a
  ValidationError never costs a store round trip.
- Services raise ValueError subclasses; use cases translate them:
  TransitionError → StateError, OwnershipError → AuthorizationError,
  any other ValueError → ValidationError.
- A rejected operation raises before anything is saved, and the unit of
  work rolls back, so the store keeps its last committed state.
- Every committed mutation is logged with the ids involved.
- All timestamps flowing out are ISO-8601 strings (UTC).
"""

from __future__ import annotations

import abc
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

import jwt
import pytz
import structlog

import security
from config import settings
from filters import EntryFilter, HandoverFilter, apply_entry_filter, apply_handover_filter
from model import (
    Caller,
    Category,
    EntryStatus,
    Equipment,
    HandoverStatus,
    JournalEntry,
    Location,
    Operator,
    OperatorSession,
    Priority,
    ReferenceIndex,
    ShiftHandover,
    ShiftType,
)
from reports import ReportData, ReportFile, ReportFormat, ReportOptions, render
from service import (
    EntryService,
    HandoverService,
    OperatorService,
    OwnershipError,
    ReferenceDataService,
    TransitionError,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ApplicationError(Exception):
    """Raised when a use case cannot complete due to a business rule violation."""


class ValidationError(ApplicationError):
    """Raised when a required field is missing or blank."""


class NotFoundError(ApplicationError):
    """Raised when a requested entity does not exist."""


class AuthorizationError(ApplicationError):
    """Raised when the caller is not the operator a guarded transition requires."""


class StateError(ApplicationError):
    """Raised when the current status does not permit the requested transition."""


class TransportError(ApplicationError):
    """Raised when a round trip to the store fails."""


class AuthenticationError(ApplicationError):
    """Raised when credentials or a session token are missing or invalid."""


def _rule_violation(exc: ValueError) -> ApplicationError:
    """Map a service-layer ValueError onto the application error taxonomy."""
    if isinstance(exc, TransitionError):
        return StateError(str(exc))
    if isinstance(exc, OwnershipError):
        return AuthorizationError(str(exc))
    return ValidationError(str(exc))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fmt(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO-8601 UTC string, or None."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _fmt_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None


def _str_id(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value else None


def _require_fields(**fields) -> None:
    """Raise ValidationError naming every field that is None or blank."""
    missing = [
        name for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f"Required fields are missing: {', '.join(missing)}.")


# ===========================================================================
# DTO DEFINITIONS
# ===========================================================================

# ---------------------------------------------------------------------------
# Reference data DTOs
# ---------------------------------------------------------------------------

@dataclass
class CategoryDTO:
    id: str
    code: str
    name: str
    description: Optional[str]
    is_active: bool
    sort_order: int
    created_at: str
    updated_at: str


@dataclass
class EquipmentDTO:
    id: str
    name: str
    description: Optional[str]
    is_active: bool
    created_at: str
    updated_at: str


@dataclass
class LocationDTO:
    id: str
    name: str
    description: Optional[str]
    is_active: bool
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Journal DTOs
# ---------------------------------------------------------------------------

@dataclass
class EntryDTO:
    id: str
    category_id: Optional[str]
    category_code: Optional[str]
    category: str                  # display label (category name, else legacy code)
    title: str
    description: str
    timestamp: str
    author_id: str
    author: str
    status: str
    priority: str
    equipment_id: Optional[str]
    equipment_name: Optional[str]
    location_id: Optional[str]
    location_name: Optional[str]
    cancelled_at: Optional[str]
    cancelled_by: Optional[str]
    cancel_reason: Optional[str]
    updated_at: str


@dataclass
class EntryStatsDTO:
    total: int
    active: int
    drafts: int
    cancelled: int
    critical: int      # active entries with critical priority


# ---------------------------------------------------------------------------
# Handover DTOs
# ---------------------------------------------------------------------------

@dataclass
class HandoverDTO:
    id: str
    shift_date: str
    shift_type: str
    outgoing_operator_id: str
    outgoing_operator_name: str
    incoming_operator_id: Optional[str]
    incoming_operator_name: Optional[str]
    ongoing_works: Optional[str]
    special_instructions: Optional[str]
    incidents: Optional[str]
    handover_notes: Optional[str]
    status: str
    handed_over_at: Optional[str]
    received_at: Optional[str]
    created_at: str
    updated_at: str


@dataclass
class HandoverStatsDTO:
    total: int
    pending: int
    completed: int
    cancelled: int
    day_shifts: int


# ---------------------------------------------------------------------------
# Operator DTOs
# ---------------------------------------------------------------------------

@dataclass
class OperatorDTO:
    id: str
    email: str
    full_name: str
    display_name: str
    is_admin: bool


@dataclass
class SessionDTO:
    access_token: str
    token_type: str
    expires_at: str
    operator: OperatorDTO


# ===========================================================================
# DTO ASSEMBLERS
# ===========================================================================

class _Assembler:
    """Converts domain model instances into DTOs."""

    @staticmethod
    def category(c: Category) -> CategoryDTO:
        return CategoryDTO(
            id=str(c.id),
            code=c.code,
            name=c.name,
            description=c.description,
            is_active=c.is_active,
            sort_order=c.sort_order,
            created_at=_fmt(c.created_at),
            updated_at=_fmt(c.updated_at),
        )

    @staticmethod
    def equipment(e: Equipment) -> EquipmentDTO:
        return EquipmentDTO(
            id=str(e.id),
            name=e.name,
            description=e.description,
            is_active=e.is_active,
            created_at=_fmt(e.created_at),
            updated_at=_fmt(e.updated_at),
        )

    @staticmethod
    def location(loc: Location) -> LocationDTO:
        return LocationDTO(
            id=str(loc.id),
            name=loc.name,
            description=loc.description,
            is_active=loc.is_active,
            created_at=_fmt(loc.created_at),
            updated_at=_fmt(loc.updated_at),
        )

    @staticmethod
    def entry(e: JournalEntry, refs: ReferenceIndex) -> EntryDTO:
        return EntryDTO(
            id=str(e.id),
            category_id=_str_id(e.category_id),
            category_code=e.category,
            category=refs.category_label(e),
            title=e.title,
            description=e.description,
            timestamp=_fmt(e.created_at),
            author_id=str(e.author_id),
            author=e.author_name,
            status=e.status.value,
            priority=e.priority.value,
            equipment_id=_str_id(e.equipment_id),
            equipment_name=refs.equipment_name(e),
            location_id=_str_id(e.location_id),
            location_name=refs.location_name(e),
            cancelled_at=_fmt(e.cancelled_at),
            cancelled_by=e.cancelled_by,
            cancel_reason=e.cancel_reason,
            updated_at=_fmt(e.updated_at),
        )

    @staticmethod
    def handover(h: ShiftHandover) -> HandoverDTO:
        return HandoverDTO(
            id=str(h.id),
            shift_date=_fmt_date(h.shift_date),
            shift_type=h.shift_type.value,
            outgoing_operator_id=str(h.outgoing_operator_id),
            outgoing_operator_name=h.outgoing_operator_name,
            incoming_operator_id=_str_id(h.incoming_operator_id),
            incoming_operator_name=h.incoming_operator_name,
            ongoing_works=h.ongoing_works,
            special_instructions=h.special_instructions,
            incidents=h.incidents,
            handover_notes=h.handover_notes,
            status=h.status.value,
            handed_over_at=_fmt(h.handed_over_at),
            received_at=_fmt(h.received_at),
            created_at=_fmt(h.created_at),
            updated_at=_fmt(h.updated_at),
        )

    @staticmethod
    def operator(o: Operator) -> OperatorDTO:
        return OperatorDTO(
            id=str(o.id),
            email=o.email,
            full_name=o.full_name,
            display_name=o.display_name,
            is_admin=o.is_admin,
        )


# ===========================================================================
# REPOSITORY INTERFACES
# ===========================================================================

class AbstractCategoryRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, category_id: uuid.UUID) -> Optional[Category]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Category]: ...
    @abc.abstractmethod
    def save(self, category: Category) -> None: ...


class AbstractEquipmentRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, equipment_id: uuid.UUID) -> Optional[Equipment]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Equipment]: ...
    @abc.abstractmethod
    def save(self, equipment: Equipment) -> None: ...


class AbstractLocationRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, location_id: uuid.UUID) -> Optional[Location]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Location]: ...
    @abc.abstractmethod
    def save(self, location: Location) -> None: ...


class AbstractJournalEntryRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, entry_id: uuid.UUID) -> Optional[JournalEntry]: ...
    @abc.abstractmethod
    def list_all(self) -> List[JournalEntry]: ...
    @abc.abstractmethod
    def save(self, entry: JournalEntry) -> None: ...


class AbstractShiftHandoverRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, handover_id: uuid.UUID) -> Optional[ShiftHandover]: ...
    @abc.abstractmethod
    def list_all(self) -> List[ShiftHandover]: ...
    @abc.abstractmethod
    def save(self, handover: ShiftHandover) -> None: ...


class AbstractOperatorRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, operator_id: uuid.UUID) -> Optional[Operator]: ...
    @abc.abstractmethod
    def get_by_email(self, email: str) -> Optional[Operator]: ...
    @abc.abstractmethod
    def save(self, operator: Operator) -> None: ...


class AbstractSessionRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, session_id: uuid.UUID) -> Optional[OperatorSession]: ...
    @abc.abstractmethod
    def save(self, session: OperatorSession) -> None: ...


# ===========================================================================
# UNIT OF WORK
# ===========================================================================

class AbstractUnitOfWork(abc.ABC):
    """
    Groups all repositories under a single transactional boundary.
    Use as a context manager:

        with uow:
            uow.entries.save(entry)
            uow.commit()
    """
    categories: AbstractCategoryRepository
    equipment: AbstractEquipmentRepository
    locations: AbstractLocationRepository
    entries: AbstractJournalEntryRepository
    handovers: AbstractShiftHandoverRepository
    operators: AbstractOperatorRepository
    sessions: AbstractSessionRepository

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        else:
            self.commit()

    @abc.abstractmethod
    def commit(self) -> None: ...

    @abc.abstractmethod
    def rollback(self) -> None: ...


# ===========================================================================
# SERVICE SINGLETONS (shared across use cases)
# ===========================================================================

_reference_svc = ReferenceDataService()
_entry_svc = EntryService()
_handover_svc = HandoverService()
_operator_svc = OperatorService()


# ===========================================================================
# USE CASE HELPERS
# ===========================================================================

def _get_or_raise(repo, record_id: uuid.UUID, noun: str):
    record = repo.get(record_id)
    if record is None:
        raise NotFoundError(f"{noun} {record_id} not found.")
    return record


def _require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise AuthorizationError("Only administrators may change reference data.")


def _reference_index(uow: AbstractUnitOfWork) -> ReferenceIndex:
    """Expand every reference table into an id lookup for entry display."""
    return ReferenceIndex.build(
        categories=uow.categories.list_all(),
        equipment=uow.equipment.list_all(),
        locations=uow.locations.list_all(),
    )


def _entries_newest_first(uow: AbstractUnitOfWork) -> List[JournalEntry]:
    return sorted(uow.entries.list_all(), key=lambda e: e.created_at, reverse=True)


def _handovers_newest_first(uow: AbstractUnitOfWork) -> List[ShiftHandover]:
    return sorted(
        uow.handovers.list_all(),
        key=lambda h: (h.shift_date, h.created_at),
        reverse=True,
    )


# ===========================================================================
# USE CASES: OPERATORS & SESSIONS
# ===========================================================================

MIN_PASSWORD_LENGTH = 6


@dataclass
class SignUpCommand:
    email: str
    password: str
    full_name: Optional[str] = None


class SignUpUseCase:
    """
    Register a new operator.  Operators whose email is listed in
    `admin_emails` are registered as administrators.
    """

    def __init__(self, admin_emails: Iterable[str] = ()):
        self._admin_emails = list(admin_emails)

    def execute(self, cmd: SignUpCommand, uow: AbstractUnitOfWork) -> OperatorDTO:
        _require_fields(email=cmd.email, password=cmd.password)
        if len(cmd.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            )
        with uow:
            existing = uow.operators.get_by_email(cmd.email.strip().lower())
            try:
                operator = _operator_svc.register(
                    email=cmd.email,
                    full_name=cmd.full_name,
                    password_hash=security.get_password_hash(cmd.password),
                    existing=existing,
                    admin_emails=self._admin_emails,
                )
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.operators.save(operator)
            uow.commit()
            logger.info("operator_registered", operator_id=str(operator.id),
                        is_admin=operator.is_admin)
            return _Assembler.operator(operator)


@dataclass
class SignInCommand:
    email: str
    password: str


class SignInUseCase:
    def execute(self, cmd: SignInCommand, uow: AbstractUnitOfWork) -> SessionDTO:
        _require_fields(email=cmd.email, password=cmd.password)
        with uow:
            operator = uow.operators.get_by_email(cmd.email.strip().lower())
            if (
                operator is None
                or not operator.is_active
                or not security.verify_password(cmd.password, operator.password_hash)
            ):
                raise AuthenticationError("Invalid email or password.")

            session = OperatorSession(operator_id=operator.id)
            token, issued_at, expires_at = security.create_access_token(operator.id, session.id)
            session.issued_at = issued_at
            session.expires_at = expires_at
            uow.sessions.save(session)
            uow.commit()
            logger.info("operator_signed_in", operator_id=str(operator.id),
                        session_id=str(session.id))
            return SessionDTO(
                access_token=token,
                token_type="bearer",
                expires_at=_fmt(expires_at),
                operator=_Assembler.operator(operator),
            )


def _decode_or_raise(token: Optional[str]):
    if not token:
        raise AuthenticationError("Not authenticated.")
    try:
        return security.decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Session expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid session token.") from exc


class SignOutUseCase:
    """Revoke the session carried by a token.  Signing out twice is harmless."""

    def execute(self, token: str, uow: AbstractUnitOfWork) -> None:
        _, session_id = _decode_or_raise(token)
        with uow:
            session = uow.sessions.get(session_id)
            if session is None:
                raise AuthenticationError("Unknown session.")
            if session.revoked_at is None:
                session.revoked_at = datetime.now(timezone.utc)
                uow.sessions.save(session)
                logger.info("operator_signed_out", operator_id=str(session.operator_id),
                            session_id=str(session.id))
            uow.commit()


class ResolveCallerUseCase:
    """Turn a bearer token into the caller identity used by every lifecycle operation."""

    def execute(self, token: Optional[str], uow: AbstractUnitOfWork) -> Caller:
        operator_id, session_id = _decode_or_raise(token)
        with uow:
            session = uow.sessions.get(session_id)
            if session is None or session.operator_id != operator_id:
                raise AuthenticationError("Unknown session.")
            if session.revoked_at is not None:
                raise AuthenticationError("Session has been signed out.")
            operator = uow.operators.get(operator_id)
            if operator is None or not operator.is_active:
                raise AuthenticationError("Operator is not active.")
            return _operator_svc.as_caller(operator)


class GetCurrentOperatorUseCase:
    def execute(self, caller: Caller, uow: AbstractUnitOfWork) -> OperatorDTO:
        with uow:
            return _Assembler.operator(_get_or_raise(uow.operators, caller.id, "Operator"))


# ===========================================================================
# USE CASES: REFERENCE DATA
# ===========================================================================

@dataclass
class CreateCategoryCommand:
    code: str
    name: str
    caller: Caller
    description: Optional[str] = None
    sort_order: int = 0


class CreateCategoryUseCase:
    def execute(self, cmd: CreateCategoryCommand, uow: AbstractUnitOfWork) -> CategoryDTO:
        _require_admin(cmd.caller)
        _require_fields(code=cmd.code, name=cmd.name)
        with uow:
            try:
                category = _reference_svc.create_category(
                    code=cmd.code,
                    name=cmd.name,
                    description=cmd.description,
                    sort_order=cmd.sort_order,
                    existing=uow.categories.list_all(),
                )
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.categories.save(category)
            uow.commit()
            logger.info("category_created", category_id=str(category.id), code=category.code)
            return _Assembler.category(category)


@dataclass
class UpdateCategoryCommand:
    category_id: uuid.UUID
    caller: Caller
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class UpdateCategoryUseCase:
    def execute(self, cmd: UpdateCategoryCommand, uow: AbstractUnitOfWork) -> CategoryDTO:
        _require_admin(cmd.caller)
        with uow:
            category = _get_or_raise(uow.categories, cmd.category_id, "Category")
            try:
                category = _reference_svc.update_category(
                    category,
                    existing=uow.categories.list_all(),
                    code=cmd.code,
                    name=cmd.name,
                    description=cmd.description,
                    sort_order=cmd.sort_order,
                )
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            if cmd.is_active is not None:
                _reference_svc.set_active(category, cmd.is_active)
            uow.categories.save(category)
            uow.commit()
            logger.info("category_updated", category_id=str(category.id))
            return _Assembler.category(category)


@dataclass
class MoveCategoryCommand:
    category_id: uuid.UUID
    direction: str      # "up" or "down"
    caller: Caller


class MoveCategoryUseCase:
    """Swap a category's sort_order with its neighbour; returns the reordered list."""

    _OFFSETS = {"up": -1, "down": 1}

    def execute(self, cmd: MoveCategoryCommand, uow: AbstractUnitOfWork) -> List[CategoryDTO]:
        _require_admin(cmd.caller)
        if cmd.direction not in self._OFFSETS:
            raise ValidationError("direction must be one of: ['down', 'up']")
        with uow:
            _get_or_raise(uow.categories, cmd.category_id, "Category")
            categories = uow.categories.list_all()
            swapped = _reference_svc.move_category(
                categories, cmd.category_id, self._OFFSETS[cmd.direction]
            )
            for category in swapped:
                uow.categories.save(category)
            uow.commit()
            if swapped:
                logger.info("category_moved", category_id=str(cmd.category_id),
                            direction=cmd.direction)
            return [_Assembler.category(c) for c in sorted(categories, key=lambda c: c.sort_order)]


class ListCategoriesUseCase:
    def execute(self, uow: AbstractUnitOfWork, active_only: bool = False) -> List[CategoryDTO]:
        with uow:
            categories = sorted(uow.categories.list_all(), key=lambda c: c.sort_order)
            return [_Assembler.category(c) for c in categories if c.is_active or not active_only]


# ---------------------------------------------------------------------------
# Equipment & Locations
# ---------------------------------------------------------------------------

@dataclass
class CreateNamedRecordCommand:
    name: str
    caller: Caller
    description: Optional[str] = None


@dataclass
class UpdateNamedRecordCommand:
    record_id: uuid.UUID
    caller: Caller
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class _NamedRecordUseCase(abc.ABC):
    """Shared create/update/list behaviour for Equipment and Location tables."""

    noun = ""
    event = ""

    @abc.abstractmethod
    def _repo(self, uow: AbstractUnitOfWork): ...

    @abc.abstractmethod
    def _new(self, name: str, description: Optional[str]): ...

    @abc.abstractmethod
    def _dto(self, record): ...


class _CreateNamedRecord(_NamedRecordUseCase):
    def execute(self, cmd: CreateNamedRecordCommand, uow: AbstractUnitOfWork):
        _require_admin(cmd.caller)
        _require_fields(name=cmd.name)
        with uow:
            record = self._new(cmd.name, cmd.description)
            self._repo(uow).save(record)
            uow.commit()
            logger.info(f"{self.event}_created", record_id=str(record.id), name=record.name)
            return self._dto(record)


class _UpdateNamedRecord(_NamedRecordUseCase):
    def execute(self, cmd: UpdateNamedRecordCommand, uow: AbstractUnitOfWork):
        _require_admin(cmd.caller)
        with uow:
            record = _get_or_raise(self._repo(uow), cmd.record_id, self.noun)
            try:
                _reference_svc.rename(record, cmd.name, cmd.description)
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            if cmd.is_active is not None:
                _reference_svc.set_active(record, cmd.is_active)
            self._repo(uow).save(record)
            uow.commit()
            logger.info(f"{self.event}_updated", record_id=str(record.id))
            return self._dto(record)


class _ListNamedRecords(_NamedRecordUseCase):
    def execute(self, uow: AbstractUnitOfWork, active_only: bool = False):
        with uow:
            records = sorted(self._repo(uow).list_all(), key=lambda r: r.name)
            return [self._dto(r) for r in records if r.is_active or not active_only]


class _EquipmentMixin:
    noun = "Equipment"
    event = "equipment"

    def _repo(self, uow): return uow.equipment
    def _new(self, name, description): return _reference_svc.create_equipment(name, description)
    def _dto(self, record): return _Assembler.equipment(record)


class _LocationMixin:
    noun = "Location"
    event = "location"

    def _repo(self, uow): return uow.locations
    def _new(self, name, description): return _reference_svc.create_location(name, description)
    def _dto(self, record): return _Assembler.location(record)


class CreateEquipmentUseCase(_EquipmentMixin, _CreateNamedRecord): ...
class UpdateEquipmentUseCase(_EquipmentMixin, _UpdateNamedRecord): ...
class ListEquipmentUseCase(_EquipmentMixin, _ListNamedRecords): ...
class CreateLocationUseCase(_LocationMixin, _CreateNamedRecord): ...
class UpdateLocationUseCase(_LocationMixin, _UpdateNamedRecord): ...
class ListLocationsUseCase(_LocationMixin, _ListNamedRecords): ...


# ===========================================================================
# USE CASES: JOURNAL ENTRIES
# ===========================================================================

@dataclass
class CreateEntryCommand:
    category_id: Optional[uuid.UUID]
    title: str
    description: str
    caller: Caller
    status: EntryStatus = EntryStatus.ACTIVE
    priority: Priority = Priority.MEDIUM
    equipment_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None


class CreateEntryUseCase:
    """
    Record a new journal entry authored by the caller.

    The entry is written as draft or active; the category, equipment and
    location it references must exist.
    """

    def execute(self, cmd: CreateEntryCommand, uow: AbstractUnitOfWork) -> EntryDTO:
        _require_fields(category_id=cmd.category_id, title=cmd.title, description=cmd.description)
        with uow:
            category = _get_or_raise(uow.categories, cmd.category_id, "Category")
            if cmd.equipment_id is not None:
                _get_or_raise(uow.equipment, cmd.equipment_id, "Equipment")
            if cmd.location_id is not None:
                _get_or_raise(uow.locations, cmd.location_id, "Location")
            try:
                entry = _entry_svc.create_entry(
                    category=category,
                    title=cmd.title,
                    description=cmd.description,
                    author=cmd.caller,
                    status=EntryStatus(cmd.status),
                    priority=Priority(cmd.priority),
                    equipment_id=cmd.equipment_id,
                    location_id=cmd.location_id,
                )
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.entries.save(entry)
            uow.commit()
            logger.info("entry_created", entry_id=str(entry.id), author_id=str(entry.author_id),
                        status=entry.status.value, priority=entry.priority.value)
            return _Assembler.entry(entry, _reference_index(uow))


@dataclass
class CancelEntryCommand:
    entry_id: uuid.UUID
    reason: str
    caller: Caller
    cancelled_by: Optional[str] = None


class CancelEntryUseCase:
    """
    Cancel a journal entry.  Only its author may do so, only once, and
    only with a reason; the cancellation fields are written together.
    """

    def execute(self, cmd: CancelEntryCommand, uow: AbstractUnitOfWork) -> EntryDTO:
        _require_fields(reason=cmd.reason)
        with uow:
            entry = _get_or_raise(uow.entries, cmd.entry_id, "Entry")
            try:
                entry = _entry_svc.cancel_entry(
                    entry,
                    reason=cmd.reason,
                    cancelled_by=cmd.cancelled_by,
                    caller=cmd.caller,
                )
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.entries.save(entry)
            uow.commit()
            logger.info("entry_cancelled", entry_id=str(entry.id),
                        cancelled_by=entry.cancelled_by)
            return _Assembler.entry(entry, _reference_index(uow))


class GetEntryUseCase:
    def execute(self, entry_id: uuid.UUID, uow: AbstractUnitOfWork) -> EntryDTO:
        with uow:
            entry = _get_or_raise(uow.entries, entry_id, "Entry")
            return _Assembler.entry(entry, _reference_index(uow))


class ListEntriesUseCase:
    """All entries, newest first, narrowed by the filter engine."""

    def __init__(self, tz: Optional[pytz.BaseTzInfo] = None):
        self._tz = tz or settings.timezone

    def execute(
        self, uow: AbstractUnitOfWork, filters: Optional[EntryFilter] = None
    ) -> List[EntryDTO]:
        with uow:
            refs = _reference_index(uow)
            entries = apply_entry_filter(_entries_newest_first(uow), filters, refs, self._tz)
            return [_Assembler.entry(e, refs) for e in entries]


class EntryStatsUseCase:
    def __init__(self, tz: Optional[pytz.BaseTzInfo] = None):
        self._tz = tz or settings.timezone

    def execute(
        self, uow: AbstractUnitOfWork, filters: Optional[EntryFilter] = None
    ) -> EntryStatsDTO:
        with uow:
            refs = _reference_index(uow)
            entries = apply_entry_filter(uow.entries.list_all(), filters, refs, self._tz)
            return EntryStatsDTO(
                total=len(entries),
                active=sum(1 for e in entries if e.status == EntryStatus.ACTIVE),
                drafts=sum(1 for e in entries if e.status == EntryStatus.DRAFT),
                cancelled=sum(1 for e in entries if e.status == EntryStatus.CANCELLED),
                critical=sum(
                    1 for e in entries
                    if e.priority == Priority.CRITICAL and e.status == EntryStatus.ACTIVE
                ),
            )


# ===========================================================================
# USE CASES: SHIFT HANDOVERS
# ===========================================================================

@dataclass
class CreateHandoverCommand:
    shift_date: Optional[date]
    shift_type: Optional[ShiftType]
    caller: Caller
    ongoing_works: Optional[str] = None
    special_instructions: Optional[str] = None
    incidents: Optional[str] = None


class CreateHandoverUseCase:
    """Open a pending handover with the caller as outgoing operator."""

    def execute(self, cmd: CreateHandoverCommand, uow: AbstractUnitOfWork) -> HandoverDTO:
        _require_fields(shift_date=cmd.shift_date, shift_type=cmd.shift_type)
        with uow:
            try:
                handover = _handover_svc.create_handover(
                    shift_date=cmd.shift_date,
                    shift_type=cmd.shift_type,
                    outgoing=cmd.caller,
                    ongoing_works=cmd.ongoing_works,
                    special_instructions=cmd.special_instructions,
                    incidents=cmd.incidents,
                )
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.handovers.save(handover)
            uow.commit()
            logger.info("handover_created", handover_id=str(handover.id),
                        shift_date=_fmt_date(handover.shift_date),
                        shift_type=handover.shift_type.value)
            return _Assembler.handover(handover)


@dataclass
class AcceptHandoverCommand:
    handover_id: uuid.UUID
    caller: Caller
    notes: Optional[str] = None


class AcceptHandoverUseCase:
    """Take over a pending handover as the incoming operator."""

    def execute(self, cmd: AcceptHandoverCommand, uow: AbstractUnitOfWork) -> HandoverDTO:
        with uow:
            handover = _get_or_raise(uow.handovers, cmd.handover_id, "Handover")
            try:
                handover = _handover_svc.accept(handover, cmd.caller, cmd.notes)
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.handovers.save(handover)
            uow.commit()
            logger.info("handover_accepted", handover_id=str(handover.id),
                        incoming_operator_id=str(handover.incoming_operator_id))
            return _Assembler.handover(handover)


@dataclass
class CompleteHandoverCommand:
    handover_id: uuid.UUID
    caller: Caller


class CompleteHandoverUseCase:
    """Close a pending handover directly as its outgoing operator."""

    def execute(self, cmd: CompleteHandoverCommand, uow: AbstractUnitOfWork) -> HandoverDTO:
        with uow:
            handover = _get_or_raise(uow.handovers, cmd.handover_id, "Handover")
            try:
                handover = _handover_svc.complete(handover, cmd.caller)
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.handovers.save(handover)
            uow.commit()
            logger.info("handover_completed", handover_id=str(handover.id))
            return _Assembler.handover(handover)


@dataclass
class CancelHandoverCommand:
    handover_id: uuid.UUID
    caller: Caller


class CancelHandoverUseCase:
    def execute(self, cmd: CancelHandoverCommand, uow: AbstractUnitOfWork) -> HandoverDTO:
        with uow:
            handover = _get_or_raise(uow.handovers, cmd.handover_id, "Handover")
            try:
                handover = _handover_svc.cancel(handover, cmd.caller)
            except ValueError as exc:
                raise _rule_violation(exc) from exc
            uow.handovers.save(handover)
            uow.commit()
            logger.info("handover_cancelled", handover_id=str(handover.id))
            return _Assembler.handover(handover)


class GetHandoverUseCase:
    def execute(self, handover_id: uuid.UUID, uow: AbstractUnitOfWork) -> HandoverDTO:
        with uow:
            return _Assembler.handover(_get_or_raise(uow.handovers, handover_id, "Handover"))


class ListHandoversUseCase:
    """All handovers ordered by shift date then creation time, newest first."""

    def execute(
        self, uow: AbstractUnitOfWork, filters: Optional[HandoverFilter] = None
    ) -> List[HandoverDTO]:
        with uow:
            handovers = apply_handover_filter(_handovers_newest_first(uow), filters)
            return [_Assembler.handover(h) for h in handovers]


class HandoverStatsUseCase:
    def execute(
        self, uow: AbstractUnitOfWork, filters: Optional[HandoverFilter] = None
    ) -> HandoverStatsDTO:
        with uow:
            handovers = apply_handover_filter(uow.handovers.list_all(), filters)
            return HandoverStatsDTO(
                total=len(handovers),
                pending=sum(1 for h in handovers if h.status == HandoverStatus.PENDING),
                completed=sum(1 for h in handovers if h.status == HandoverStatus.COMPLETED),
                cancelled=sum(1 for h in handovers if h.status == HandoverStatus.CANCELLED),
                day_shifts=sum(1 for h in handovers if h.shift_type == ShiftType.DAY),
            )


# ===========================================================================
# USE CASES: REPORTS
# ===========================================================================

@dataclass
class GenerateEntryReportCommand:
    format: ReportFormat
    caller: Caller
    filters: EntryFilter = field(default_factory=EntryFilter)
    options: ReportOptions = field(default_factory=ReportOptions)


class GenerateEntryReportUseCase:
    """
    Export the filtered entry list.  Rows are labelled here and handed to
    the serializer for the requested format.
    """

    def __init__(self, tz: Optional[pytz.BaseTzInfo] = None):
        self._tz = tz or settings.timezone

    def execute(self, cmd: GenerateEntryReportCommand, uow: AbstractUnitOfWork) -> ReportFile:
        with uow:
            refs = _reference_index(uow)
            entries = apply_entry_filter(_entries_newest_first(uow), cmd.filters, refs, self._tz)
        data = ReportData(
            entries=entries,
            refs=refs,
            generated_by=cmd.caller.display_name,
            filters=cmd.filters,
            tz=self._tz,
        )
        report = render(ReportFormat(cmd.format), data, cmd.options)
        logger.info("entry_report_generated", format=ReportFormat(cmd.format).value,
                    entries=len(entries), requested_by=str(cmd.caller.id))
        return report
