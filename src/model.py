"""
model.py

Domain models for the Shift Journal (operational log and shift handover
tracker).

Entities
--------
- Category
- Equipment
- Location
- JournalEntry
- ShiftHandover
- Operator
- OperatorSession

All models use Python dataclasses for clean, framework-agnostic definitions.
UUID primary keys are used throughout for portability.
Timestamps are always stored in UTC.

Status transitions for journal entries and shift handovers are declared
here as explicit tables; the service layer checks every mutation against
them, so an illegal move is rejected no matter which client requested it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class EntryStatus(str, Enum):
    """Lifecycle status of a journal entry."""
    DRAFT = "draft"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ShiftType(str, Enum):
    DAY = "day"
    NIGHT = "night"


class HandoverStatus(str, Enum):
    """
    Lifecycle status of a shift handover.

    PENDING    – Created by the outgoing operator, waiting to be taken over.
    COMPLETED  – Either accepted by an incoming operator or closed directly
                 by the outgoing operator.
    CANCELLED  – Withdrawn by the outgoing operator while still pending.
    """
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EntryCategoryCode(str, Enum):
    """
    Legacy category codes stored directly on journal entries before
    categories became a reference table.  Kept for rows that were written
    without a category_id.
    """
    EQUIPMENT_WORK = "equipment_work"
    RELAY_PROTECTION = "relay_protection"
    TEAM_PERMITS = "team_permits"
    EMERGENCY = "emergency"
    NETWORK_OUTAGES = "network_outages"
    OTHER = "other"


LEGACY_CATEGORY_LABELS: Dict[EntryCategoryCode, str] = {
    EntryCategoryCode.EQUIPMENT_WORK: "Работы на оборудовании",
    EntryCategoryCode.RELAY_PROTECTION: "РЗА и телемеханика",
    EntryCategoryCode.TEAM_PERMITS: "Допуски бригад",
    EntryCategoryCode.EMERGENCY: "Аварийные сообщения",
    EntryCategoryCode.NETWORK_OUTAGES: "Отключения в сети",
    EntryCategoryCode.OTHER: "Прочие события",
}


class GroupBy(str, Enum):
    """Grouping key for entry reports."""
    NONE = "none"
    CATEGORY = "category"
    STATUS = "status"
    PRIORITY = "priority"
    DATE = "date"


# ---------------------------------------------------------------------------
# Transition tables
# ---------------------------------------------------------------------------

ENTRY_TRANSITIONS: Dict[EntryStatus, FrozenSet[EntryStatus]] = {
    EntryStatus.DRAFT: frozenset({EntryStatus.ACTIVE, EntryStatus.CANCELLED}),
    EntryStatus.ACTIVE: frozenset({EntryStatus.CANCELLED}),
    EntryStatus.CANCELLED: frozenset(),
}

HANDOVER_TRANSITIONS: Dict[HandoverStatus, FrozenSet[HandoverStatus]] = {
    HandoverStatus.PENDING: frozenset({HandoverStatus.COMPLETED, HandoverStatus.CANCELLED}),
    HandoverStatus.COMPLETED: frozenset(),
    HandoverStatus.CANCELLED: frozenset(),
}


def can_transition(table: Dict, current: Enum, target: Enum) -> bool:
    return target in table.get(current, frozenset())


def is_terminal(table: Dict, status: Enum) -> bool:
    return not table.get(status)


# ---------------------------------------------------------------------------
# Reference Data
# ---------------------------------------------------------------------------


@dataclass
class Category:
    """
    A journal entry category managed by administrators.

    `code` is the stable identifier (unique).  Categories are reordered by
    swapping `sort_order` with a neighbour and are never deleted; an
    inactive category stays valid for historical entries.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    code: str = ""
    name: str = ""
    description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class Equipment:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class Location:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------


@dataclass
class JournalEntry:
    """
    A single timestamped operational log record.

    Entries are append-only: title and description are never edited once
    written.  The only mutation is the cancel transition, which stamps the
    three cancellation fields together.  `created_at` is the entry
    timestamp shown to operators.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    category_id: Optional[uuid.UUID] = None     # FK → Category.id
    category: Optional[str] = None              # legacy denormalised category code
    title: str = ""
    description: str = ""

    # Author (captured at creation; immutable)
    author_id: uuid.UUID = field(default_factory=uuid.uuid4)   # FK → Operator.id
    author_name: str = ""

    status: EntryStatus = EntryStatus.DRAFT
    priority: Priority = Priority.MEDIUM
    equipment_id: Optional[uuid.UUID] = None    # FK → Equipment.id
    location_id: Optional[uuid.UUID] = None     # FK → Location.id

    # Cancellation audit trail (set once, together)
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancel_reason: Optional[str] = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Shift Handover
# ---------------------------------------------------------------------------


@dataclass
class ShiftHandover:
    """
    Transfer of responsibility for one shift from the outgoing operator to
    the incoming operator.

    A handover is completed by exactly one of two paths: the incoming
    operator accepts it (incoming_operator_*, handover_notes, received_at)
    or the outgoing operator closes it directly (handed_over_at).
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    shift_date: date = field(default_factory=date.today)
    shift_type: ShiftType = ShiftType.DAY

    outgoing_operator_id: uuid.UUID = field(default_factory=uuid.uuid4)  # FK → Operator.id
    outgoing_operator_name: str = ""
    incoming_operator_id: Optional[uuid.UUID] = None                     # FK → Operator.id
    incoming_operator_name: Optional[str] = None

    ongoing_works: Optional[str] = None
    special_instructions: Optional[str] = None
    incidents: Optional[str] = None
    handover_notes: Optional[str] = None

    status: HandoverStatus = HandoverStatus.PENDING
    handed_over_at: Optional[datetime] = None
    received_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Operators & Sessions
# ---------------------------------------------------------------------------


@dataclass
class Operator:
    """A registered user of the journal."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    email: str = ""
    full_name: str = ""
    password_hash: str = ""
    is_admin: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]


@dataclass
class OperatorSession:
    """A signed-in session; `id` is the jti carried by the bearer token."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    operator_id: uuid.UUID = field(default_factory=uuid.uuid4)   # FK → Operator.id
    issued_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime = field(default_factory=_utcnow)
    revoked_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Reference lookups
# ---------------------------------------------------------------------------


@dataclass
class ReferenceIndex:
    """
    Id-keyed lookup of reference records, used to expand the foreign keys
    of journal entries into display names.

    `category_label` is the one place that resolves an entry's category
    for display: the referenced category's name when the reference
    resolves, otherwise the label of the legacy code stored on the entry
    (an unrecognised code is shown as stored), otherwise the "other" label.
    """
    categories: Dict[uuid.UUID, Category] = field(default_factory=dict)
    equipment: Dict[uuid.UUID, Equipment] = field(default_factory=dict)
    locations: Dict[uuid.UUID, Location] = field(default_factory=dict)

    @classmethod
    def build(cls, categories=(), equipment=(), locations=()) -> "ReferenceIndex":
        return cls(
            categories={c.id: c for c in categories},
            equipment={e.id: e for e in equipment},
            locations={loc.id: loc for loc in locations},
        )

    def category_for(self, entry: JournalEntry) -> Optional[Category]:
        if entry.category_id is None:
            return None
        return self.categories.get(entry.category_id)

    def equipment_for(self, entry: JournalEntry) -> Optional[Equipment]:
        if entry.equipment_id is None:
            return None
        return self.equipment.get(entry.equipment_id)

    def location_for(self, entry: JournalEntry) -> Optional[Location]:
        if entry.location_id is None:
            return None
        return self.locations.get(entry.location_id)

    def category_label(self, entry: JournalEntry) -> str:
        category = self.category_for(entry)
        if category is not None:
            return category.name
        code = entry.category or EntryCategoryCode.OTHER.value
        try:
            return LEGACY_CATEGORY_LABELS[EntryCategoryCode(code)]
        except ValueError:
            return code

    def equipment_name(self, entry: JournalEntry) -> Optional[str]:
        item = self.equipment_for(entry)
        return item.name if item else None

    def location_name(self, entry: JournalEntry) -> Optional[str]:
        item = self.location_for(entry)
        return item.name if item else None


@dataclass(frozen=True)
class Caller:
    """The identity on whose behalf a lifecycle operation runs."""
    id: uuid.UUID
    display_name: str
    is_admin: bool = False
