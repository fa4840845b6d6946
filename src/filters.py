"""
filters.py

In-memory filter engine for journal entries and shift handovers.

Both filters are conjunctive: every field that is set must match.  A
field left as None (or an empty string) imposes no constraint.  Filtering
is stable; the relative order of the input collection is preserved.

Date bounds are calendar days.  For entries, `date_from` is widened to
00:00:00.000000 and `date_to` to 23:59:59.999999 of that day in the
journal's local timezone and compared with the entry timestamp.  For
handovers, `shift_date` is itself a calendar day and is compared
directly.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Callable, Iterable, List, Optional

import pytz

from model import (
    EntryStatus,
    HandoverStatus,
    JournalEntry,
    Priority,
    ReferenceIndex,
    ShiftHandover,
    ShiftType,
)


@dataclass
class EntryFilter:
    category_id: Optional[uuid.UUID] = None
    status: Optional[EntryStatus] = None
    priority: Optional[Priority] = None
    equipment_id: Optional[uuid.UUID] = None
    location_id: Optional[uuid.UUID] = None
    search_text: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def active_fields(self) -> dict:
        """The fields that constrain the result, in declaration order."""
        return {k: v for k, v in asdict(self).items() if _is_set(v)}


@dataclass
class HandoverFilter:
    status: Optional[HandoverStatus] = None
    shift_type: Optional[ShiftType] = None
    operator: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def active_fields(self) -> dict:
        return {k: v for k, v in asdict(self).items() if _is_set(v)}


def _is_set(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def start_of_day(day: date, tz: pytz.BaseTzInfo) -> datetime:
    return tz.localize(datetime.combine(day, time.min))


def end_of_day(day: date, tz: pytz.BaseTzInfo) -> datetime:
    return tz.localize(datetime.combine(day, time.max))


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle in haystack.lower()


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

def entry_predicates(
    criteria: EntryFilter,
    refs: ReferenceIndex,
    tz: pytz.BaseTzInfo,
) -> List[Callable[[JournalEntry], bool]]:
    """Build one predicate per constrained field of an entry filter."""
    predicates: List[Callable[[JournalEntry], bool]] = []

    if _is_set(criteria.category_id):
        predicates.append(lambda e: e.category_id == criteria.category_id)
    if _is_set(criteria.status):
        predicates.append(lambda e: e.status == criteria.status)
    if _is_set(criteria.priority):
        predicates.append(lambda e: e.priority == criteria.priority)
    if _is_set(criteria.equipment_id):
        predicates.append(lambda e: e.equipment_id == criteria.equipment_id)
    if _is_set(criteria.location_id):
        predicates.append(lambda e: e.location_id == criteria.location_id)

    if _is_set(criteria.search_text):
        needle = criteria.search_text.lower()

        def matches_text(e: JournalEntry) -> bool:
            category = refs.category_for(e)
            return (
                _contains(e.title, needle)
                or _contains(e.description, needle)
                or _contains(e.author_name, needle)
                or _contains(refs.equipment_name(e), needle)
                or _contains(refs.location_name(e), needle)
                or _contains(category.name if category else None, needle)
            )

        predicates.append(matches_text)

    if _is_set(criteria.date_from):
        lower = start_of_day(criteria.date_from, tz)
        predicates.append(lambda e: e.created_at >= lower)
    if _is_set(criteria.date_to):
        upper = end_of_day(criteria.date_to, tz)
        predicates.append(lambda e: e.created_at <= upper)

    return predicates


def apply_entry_filter(
    entries: Iterable[JournalEntry],
    criteria: Optional[EntryFilter],
    refs: Optional[ReferenceIndex] = None,
    tz: Optional[pytz.BaseTzInfo] = None,
) -> List[JournalEntry]:
    """Return the entries that satisfy every constrained field of `criteria`."""
    if criteria is None:
        return list(entries)
    predicates = entry_predicates(criteria, refs or ReferenceIndex(), tz or pytz.utc)
    return [e for e in entries if all(p(e) for p in predicates)]


# ---------------------------------------------------------------------------
# Handovers
# ---------------------------------------------------------------------------

def handover_predicates(criteria: HandoverFilter) -> List[Callable[[ShiftHandover], bool]]:
    predicates: List[Callable[[ShiftHandover], bool]] = []

    if _is_set(criteria.status):
        predicates.append(lambda h: h.status == criteria.status)
    if _is_set(criteria.shift_type):
        predicates.append(lambda h: h.shift_type == criteria.shift_type)
    if _is_set(criteria.operator):
        needle = criteria.operator.lower()
        predicates.append(
            lambda h: _contains(h.outgoing_operator_name, needle)
            or _contains(h.incoming_operator_name, needle)
        )
    if _is_set(criteria.date_from):
        predicates.append(lambda h: h.shift_date >= criteria.date_from)
    if _is_set(criteria.date_to):
        predicates.append(lambda h: h.shift_date <= criteria.date_to)

    return predicates


def apply_handover_filter(
    handovers: Iterable[ShiftHandover],
    criteria: Optional[HandoverFilter],
) -> List[ShiftHandover]:
    """Return the handovers that satisfy every constrained field of `criteria`."""
    if criteria is None:
        return list(handovers)
    predicates = handover_predicates(criteria)
    return [h for h in handovers if all(p(h) for p in predicates)]
