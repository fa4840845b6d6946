"""
service.py

Service layer for the Shift Journal.

Responsibilities
----------------
Each service class encapsulates the business rules for its aggregate.
Services receive and return domain model instances (from model.py).
No persistence is handled here; callers load and store models through
the repositories of a unit of work.

Services
--------
- ReferenceDataService   – Category / Equipment / Location maintenance
- EntryService           – Journal entry creation and cancellation
- HandoverService        – Shift handover creation and state transitions
- OperatorService        – Operator registration

Design notes
------------
- Every status change is checked against the transition tables in
  model.py before any field is touched, so a rejected call leaves the
  object exactly as it was.
- Rule violations raise ValueError with a descriptive message.  Two
  subclasses carry the kind of violation upward: TransitionError (the
  current status does not permit the move) and OwnershipError (the
  caller is not the operator the rule requires).  The application layer
  maps them onto its error taxonomy.
- UTC datetimes are used throughout.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from model import (
    ENTRY_TRANSITIONS,
    HANDOVER_TRANSITIONS,
    Caller,
    Category,
    EntryStatus,
    Equipment,
    HandoverStatus,
    JournalEntry,
    Location,
    Operator,
    Priority,
    ShiftHandover,
    ShiftType,
    can_transition,
)


class TransitionError(ValueError):
    """The current status does not permit the requested transition."""


class OwnershipError(ValueError):
    """The acting operator is not the one the rule requires."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: Optional[str], label: str) -> str:
    """Return the stripped value, or raise ValueError if it is missing or blank."""
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required.")
    return str(value).strip()


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_transition(table: Dict, current, target, noun: str) -> None:
    if not can_transition(table, current, target):
        raise TransitionError(
            f"{noun} in status '{current.value}' cannot move to '{target.value}'."
        )


# ---------------------------------------------------------------------------
# ReferenceDataService
# ---------------------------------------------------------------------------

class ReferenceDataService:
    """
    Maintains the lookup tables that enrich journal entries.

    Records are never deleted; they are deactivated so that historical
    entries referencing them stay valid.
    """

    # --- Categories ---------------------------------------------------------

    def create_category(
        self,
        code: str,
        name: str,
        description: Optional[str],
        sort_order: int,
        existing: Iterable[Category],
    ) -> Category:
        """Create and return a new Category (unsaved)."""
        code = _require_text(code, "Category code")
        name = _require_text(name, "Category name")
        if any(c.code == code for c in existing):
            raise ValueError(f"A category with code '{code}' already exists.")
        return Category(
            code=code,
            name=name,
            description=_optional_text(description),
            sort_order=sort_order or 0,
            created_at=_utcnow(),
            updated_at=_utcnow(),
        )

    def update_category(
        self,
        category: Category,
        existing: Iterable[Category],
        code: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> Category:
        """Apply field-level updates to a category."""
        if code is not None:
            code = _require_text(code, "Category code")
            if any(c.code == code and c.id != category.id for c in existing):
                raise ValueError(f"A category with code '{code}' already exists.")
            category.code = code
        if name is not None:
            category.name = _require_text(name, "Category name")
        if description is not None:
            category.description = _optional_text(description)
        if sort_order is not None:
            category.sort_order = sort_order
        category.updated_at = _utcnow()
        return category

    def move_category(
        self,
        categories: List[Category],
        category_id: uuid.UUID,
        offset: int,
    ) -> List[Category]:
        """
        Swap the sort_order of a category with its neighbour.

        `offset` is -1 to move up or +1 to move down.  Returns the two
        updated categories, or an empty list when the category is already
        at that end of the list.
        """
        ordered = sorted(categories, key=lambda c: c.sort_order)
        index = next((i for i, c in enumerate(ordered) if c.id == category_id), None)
        if index is None:
            raise ValueError(f"Category {category_id} is not in the list.")
        neighbour_index = index + offset
        if neighbour_index < 0 or neighbour_index >= len(ordered):
            return []

        current, neighbour = ordered[index], ordered[neighbour_index]
        current.sort_order, neighbour.sort_order = neighbour.sort_order, current.sort_order
        current.updated_at = _utcnow()
        neighbour.updated_at = _utcnow()
        return [current, neighbour]

    # --- Equipment & Locations ---------------------------------------------

    def create_equipment(self, name: str, description: Optional[str]) -> Equipment:
        return Equipment(
            name=_require_text(name, "Equipment name"),
            description=_optional_text(description),
            created_at=_utcnow(),
            updated_at=_utcnow(),
        )

    def create_location(self, name: str, description: Optional[str]) -> Location:
        return Location(
            name=_require_text(name, "Location name"),
            description=_optional_text(description),
            created_at=_utcnow(),
            updated_at=_utcnow(),
        )

    def rename(self, record, name: Optional[str], description: Optional[str]):
        """Update the name/description of an Equipment or Location record."""
        if name is not None:
            record.name = _require_text(name, "Name")
        if description is not None:
            record.description = _optional_text(description)
        record.updated_at = _utcnow()
        return record

    # --- Activation ---------------------------------------------------------

    def set_active(self, record, is_active: bool):
        """Activate or deactivate any reference record."""
        record.is_active = is_active
        record.updated_at = _utcnow()
        return record


# ---------------------------------------------------------------------------
# EntryService
# ---------------------------------------------------------------------------

class EntryService:
    """
    Journal entry lifecycle.

    Entries are created as draft or active and may later be cancelled
    once; nothing else about an entry ever changes.
    """

    def create_entry(
        self,
        category: Category,
        title: str,
        description: str,
        author: Caller,
        status: EntryStatus,
        priority: Priority,
        equipment_id: Optional[uuid.UUID] = None,
        location_id: Optional[uuid.UUID] = None,
    ) -> JournalEntry:
        """Create and return a new JournalEntry (unsaved)."""
        title = _require_text(title, "Title")
        description = _require_text(description, "Description")
        if status not in (EntryStatus.DRAFT, EntryStatus.ACTIVE):
            raise ValueError("A new entry must be created as draft or active.")
        now = _utcnow()
        return JournalEntry(
            category_id=category.id,
            category=category.code,
            title=title,
            description=description,
            author_id=author.id,
            author_name=author.display_name,
            status=status,
            priority=priority,
            equipment_id=equipment_id,
            location_id=location_id,
            created_at=now,
            updated_at=now,
        )

    def cancel_entry(
        self,
        entry: JournalEntry,
        reason: str,
        cancelled_by: str,
        caller: Caller,
    ) -> JournalEntry:
        """
        Cancel an entry and stamp the cancellation audit fields.

        Business rules enforced:
        - A cancellation reason is mandatory.
        - Only the author may cancel the entry.
        - The entry must not already be cancelled.
        """
        reason = _require_text(reason, "Cancellation reason")
        if entry.author_id != caller.id:
            raise OwnershipError("Only the author of an entry may cancel it.")
        _require_transition(ENTRY_TRANSITIONS, entry.status, EntryStatus.CANCELLED, "Entry")

        now = _utcnow()
        entry.status = EntryStatus.CANCELLED
        entry.cancelled_at = now
        entry.cancelled_by = _optional_text(cancelled_by) or caller.display_name
        entry.cancel_reason = reason
        entry.updated_at = now
        return entry


# ---------------------------------------------------------------------------
# HandoverService
# ---------------------------------------------------------------------------

class HandoverService:
    """
    Shift handover state machine.

    pending ──accept (incoming operator)──▶ completed
    pending ──complete (outgoing operator)▶ completed
    pending ──cancel (outgoing operator)──▶ cancelled

    The status check runs before the ownership check, so a handover in a
    terminal state always reports a TransitionError.
    """

    def create_handover(
        self,
        shift_date: Optional[date],
        shift_type: Optional[ShiftType],
        outgoing: Caller,
        ongoing_works: Optional[str] = None,
        special_instructions: Optional[str] = None,
        incidents: Optional[str] = None,
    ) -> ShiftHandover:
        """Create and return a new pending ShiftHandover (unsaved)."""
        if shift_date is None:
            raise ValueError("Shift date is required.")
        if shift_type is None:
            raise ValueError("Shift type is required.")
        now = _utcnow()
        return ShiftHandover(
            shift_date=shift_date,
            shift_type=ShiftType(shift_type),
            outgoing_operator_id=outgoing.id,
            outgoing_operator_name=outgoing.display_name,
            ongoing_works=_optional_text(ongoing_works),
            special_instructions=_optional_text(special_instructions),
            incidents=_optional_text(incidents),
            status=HandoverStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def accept(
        self,
        handover: ShiftHandover,
        incoming: Caller,
        notes: Optional[str] = None,
    ) -> ShiftHandover:
        """Take over a pending handover as the incoming operator."""
        _require_transition(
            HANDOVER_TRANSITIONS, handover.status, HandoverStatus.COMPLETED, "Handover"
        )
        if handover.outgoing_operator_id == incoming.id:
            raise OwnershipError("An operator cannot accept their own handover.")

        now = _utcnow()
        handover.incoming_operator_id = incoming.id
        handover.incoming_operator_name = incoming.display_name
        handover.handover_notes = _optional_text(notes)
        handover.received_at = now
        handover.status = HandoverStatus.COMPLETED
        handover.updated_at = now
        return handover

    def complete(self, handover: ShiftHandover, caller: Caller) -> ShiftHandover:
        """Close a pending handover directly as the outgoing operator."""
        _require_transition(
            HANDOVER_TRANSITIONS, handover.status, HandoverStatus.COMPLETED, "Handover"
        )
        self._require_outgoing(handover, caller, "complete")

        now = _utcnow()
        handover.handed_over_at = now
        handover.status = HandoverStatus.COMPLETED
        handover.updated_at = now
        return handover

    def cancel(self, handover: ShiftHandover, caller: Caller) -> ShiftHandover:
        """Withdraw a pending handover as the outgoing operator."""
        _require_transition(
            HANDOVER_TRANSITIONS, handover.status, HandoverStatus.CANCELLED, "Handover"
        )
        self._require_outgoing(handover, caller, "cancel")

        handover.status = HandoverStatus.CANCELLED
        handover.updated_at = _utcnow()
        return handover

    @staticmethod
    def _require_outgoing(handover: ShiftHandover, caller: Caller, action: str) -> None:
        if handover.outgoing_operator_id != caller.id:
            raise OwnershipError(
                f"Only the outgoing operator may {action} this handover."
            )


# ---------------------------------------------------------------------------
# OperatorService
# ---------------------------------------------------------------------------

class OperatorService:
    """Operator registration rules."""

    def register(
        self,
        email: str,
        full_name: Optional[str],
        password_hash: str,
        existing: Optional[Operator],
        admin_emails: Iterable[str] = (),
    ) -> Operator:
        """Create and return a new Operator (unsaved)."""
        email = _require_text(email, "Email").lower()
        if existing is not None:
            raise ValueError(f"An operator with email '{email}' already exists.")
        return Operator(
            email=email,
            full_name=_optional_text(full_name) or "",
            password_hash=password_hash,
            is_admin=email in {e.lower() for e in admin_emails},
            created_at=_utcnow(),
        )

    @staticmethod
    def as_caller(operator: Operator) -> Caller:
        return Caller(
            id=operator.id,
            display_name=operator.display_name,
            is_admin=operator.is_admin,
        )
