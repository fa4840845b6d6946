"""
Tests for domain services: lifecycle guards and reference data rules
"""
import uuid
from datetime import date

import pytest

from model import (
    Caller,
    Category,
    EntryStatus,
    HandoverStatus,
    JournalEntry,
    Priority,
    ShiftType,
)
from service import (
    EntryService,
    HandoverService,
    OperatorService,
    OwnershipError,
    ReferenceDataService,
    TransitionError,
)


@pytest.fixture
def entry_svc():
    return EntryService()


@pytest.fixture
def handover_svc():
    return HandoverService()


@pytest.fixture
def reference_svc():
    return ReferenceDataService()


class TestEntryService:
    """Entry creation and cancellation"""

    def test_create_copies_author_and_legacy_code(self, entry_svc, operator_a):
        category = Category(code="emergency", name="Аварийные ситуации")
        entry = entry_svc.create_entry(
            category=category,
            title="  Срабатывание защиты  ",
            description="Отключение фидера 6",
            author=operator_a,
            status=EntryStatus.ACTIVE,
            priority=Priority.CRITICAL,
        )

        assert entry.title == "Срабатывание защиты"
        assert entry.category_id == category.id
        assert entry.category == "emergency"
        assert entry.author_id == operator_a.id
        assert entry.author_name == "Иванов"
        assert entry.cancelled_at is None

    @pytest.mark.parametrize("title,description", [("", "x"), ("x", "   "), (None, "x")])
    def test_create_requires_title_and_description(self, entry_svc, operator_a, title, description):
        with pytest.raises(ValueError):
            entry_svc.create_entry(Category(), title, description, operator_a,
                                   EntryStatus.ACTIVE, Priority.LOW)

    def test_create_rejects_cancelled_status(self, entry_svc, operator_a):
        with pytest.raises(ValueError):
            entry_svc.create_entry(Category(), "t", "d", operator_a,
                                   EntryStatus.CANCELLED, Priority.LOW)

    def test_cancel_stamps_all_three_fields(self, entry_svc, operator_a):
        entry = JournalEntry(author_id=operator_a.id, status=EntryStatus.ACTIVE)
        entry_svc.cancel_entry(entry, "Ложное срабатывание", "Иванов", operator_a)

        assert entry.status == EntryStatus.CANCELLED
        assert entry.cancelled_at is not None
        assert entry.cancelled_by == "Иванов"
        assert entry.cancel_reason == "Ложное срабатывание"

    def test_cancel_defaults_cancelled_by_to_caller(self, entry_svc, operator_a):
        entry = JournalEntry(author_id=operator_a.id, status=EntryStatus.DRAFT)
        entry_svc.cancel_entry(entry, "Дубликат", None, operator_a)

        assert entry.cancelled_by == operator_a.display_name

    def test_cancel_requires_reason(self, entry_svc, operator_a):
        entry = JournalEntry(author_id=operator_a.id, status=EntryStatus.ACTIVE)
        with pytest.raises(ValueError) as exc_info:
            entry_svc.cancel_entry(entry, "   ", None, operator_a)

        assert not isinstance(exc_info.value, (TransitionError, OwnershipError))
        assert entry.status == EntryStatus.ACTIVE

    def test_cancel_by_non_author_is_ownership_error(self, entry_svc, operator_a, operator_b):
        entry = JournalEntry(author_id=operator_a.id, status=EntryStatus.ACTIVE)
        with pytest.raises(OwnershipError):
            entry_svc.cancel_entry(entry, "Причина", None, operator_b)
        assert entry.cancelled_at is None

    def test_second_cancel_is_transition_error_and_keeps_fields(self, entry_svc, operator_a):
        entry = JournalEntry(author_id=operator_a.id, status=EntryStatus.ACTIVE)
        entry_svc.cancel_entry(entry, "Первая причина", "Иванов", operator_a)
        first = (entry.cancelled_at, entry.cancelled_by, entry.cancel_reason)

        with pytest.raises(TransitionError):
            entry_svc.cancel_entry(entry, "Вторая причина", "Петров", operator_a)

        assert (entry.cancelled_at, entry.cancelled_by, entry.cancel_reason) == first


class TestHandoverService:
    """Handover state machine"""

    def _pending(self, svc, outgoing):
        return svc.create_handover(date(2024, 3, 10), ShiftType.DAY, outgoing,
                                   ongoing_works="Ремонт КРУ-2")

    def test_create_is_pending_with_outgoing_operator(self, handover_svc, operator_a):
        handover = self._pending(handover_svc, operator_a)

        assert handover.status == HandoverStatus.PENDING
        assert handover.outgoing_operator_id == operator_a.id
        assert handover.outgoing_operator_name == "Иванов"
        assert handover.incoming_operator_id is None

    def test_create_requires_date_and_type(self, handover_svc, operator_a):
        with pytest.raises(ValueError):
            handover_svc.create_handover(None, ShiftType.DAY, operator_a)
        with pytest.raises(ValueError):
            handover_svc.create_handover(date(2024, 3, 10), None, operator_a)

    def test_accept_sets_incoming_fields_only(self, handover_svc, operator_a, operator_b):
        handover = self._pending(handover_svc, operator_a)
        handover_svc.accept(handover, operator_b, "Принял без замечаний")

        assert handover.status == HandoverStatus.COMPLETED
        assert handover.incoming_operator_id == operator_b.id
        assert handover.incoming_operator_name == "Петров"
        assert handover.handover_notes == "Принял без замечаний"
        assert handover.received_at is not None
        assert handover.handed_over_at is None

    def test_accept_own_handover_is_ownership_error(self, handover_svc, operator_a):
        handover = self._pending(handover_svc, operator_a)
        with pytest.raises(OwnershipError):
            handover_svc.accept(handover, operator_a)
        assert handover.status == HandoverStatus.PENDING

    def test_complete_sets_handed_over_at_only(self, handover_svc, operator_a):
        handover = self._pending(handover_svc, operator_a)
        handover_svc.complete(handover, operator_a)

        assert handover.status == HandoverStatus.COMPLETED
        assert handover.handed_over_at is not None
        assert handover.incoming_operator_id is None

    def test_complete_by_other_operator_is_ownership_error(self, handover_svc, operator_a, operator_b):
        handover = self._pending(handover_svc, operator_a)
        with pytest.raises(OwnershipError):
            handover_svc.complete(handover, operator_b)

    def test_accept_after_complete_is_transition_error(self, handover_svc, operator_a, operator_b):
        handover = self._pending(handover_svc, operator_a)
        handover_svc.complete(handover, operator_a)

        with pytest.raises(TransitionError):
            handover_svc.accept(handover, operator_b)
        assert handover.incoming_operator_id is None

    def test_terminal_state_wins_over_ownership(self, handover_svc, operator_a, operator_b):
        handover = self._pending(handover_svc, operator_a)
        handover_svc.cancel(handover, operator_a)

        with pytest.raises(TransitionError):
            handover_svc.cancel(handover, operator_b)


class TestReferenceDataService:
    """Category ordering and reference record maintenance"""

    def _categories(self):
        return [
            Category(code="a", name="A", sort_order=1),
            Category(code="b", name="B", sort_order=2),
            Category(code="c", name="C", sort_order=3),
        ]

    def test_duplicate_code_is_rejected(self, reference_svc):
        with pytest.raises(ValueError):
            reference_svc.create_category("a", "Другая", None, 0, self._categories())

    def test_update_to_existing_code_is_rejected(self, reference_svc):
        categories = self._categories()
        with pytest.raises(ValueError):
            reference_svc.update_category(categories[0], categories, code="b")

    def test_move_up_swaps_with_previous(self, reference_svc):
        categories = self._categories()
        swapped = reference_svc.move_category(categories, categories[1].id, -1)

        assert {c.code for c in swapped} == {"a", "b"}
        by_code = {c.code: c.sort_order for c in categories}
        assert by_code == {"a": 2, "b": 1, "c": 3}

    def test_move_at_either_end_is_noop(self, reference_svc):
        categories = self._categories()

        assert reference_svc.move_category(categories, categories[0].id, -1) == []
        assert reference_svc.move_category(categories, categories[2].id, 1) == []
        assert [c.sort_order for c in categories] == [1, 2, 3]

    def test_move_unknown_category_raises(self, reference_svc):
        with pytest.raises(ValueError):
            reference_svc.move_category(self._categories(), uuid.uuid4(), 1)

    def test_set_active_deactivates(self, reference_svc):
        equipment = reference_svc.create_equipment("Трансформатор", None)
        reference_svc.set_active(equipment, False)

        assert equipment.is_active is False


class TestOperatorService:
    def test_register_lowercases_email_and_marks_admin(self):
        operator = OperatorService().register(
            "Admin@Plant.Example", "Главный", "hash", None, ["admin@plant.example"]
        )

        assert operator.email == "admin@plant.example"
        assert operator.is_admin is True

    def test_register_rejects_existing_operator(self):
        existing = OperatorService().register("a@plant.example", None, "hash", None)
        with pytest.raises(ValueError):
            OperatorService().register("a@plant.example", None, "hash", existing)

    def test_as_caller_carries_admin_flag(self):
        operator = OperatorService().register("x@plant.example", "Сидоров", "h", None)
        caller = OperatorService.as_caller(operator)

        assert caller == Caller(id=operator.id, display_name="Сидоров", is_admin=False)
