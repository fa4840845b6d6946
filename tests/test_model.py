"""
Tests for domain models: transition tables and reference lookups
"""
import uuid

from model import (
    ENTRY_TRANSITIONS,
    HANDOVER_TRANSITIONS,
    Category,
    EntryStatus,
    Equipment,
    HandoverStatus,
    JournalEntry,
    Operator,
    ReferenceIndex,
    can_transition,
    is_terminal,
)


class TestTransitionTables:
    """Status transition tables"""

    def test_entry_may_be_cancelled_from_draft_or_active(self):
        assert can_transition(ENTRY_TRANSITIONS, EntryStatus.DRAFT, EntryStatus.CANCELLED)
        assert can_transition(ENTRY_TRANSITIONS, EntryStatus.ACTIVE, EntryStatus.CANCELLED)

    def test_cancelled_entry_is_terminal(self):
        assert is_terminal(ENTRY_TRANSITIONS, EntryStatus.CANCELLED)
        for target in EntryStatus:
            assert not can_transition(ENTRY_TRANSITIONS, EntryStatus.CANCELLED, target)

    def test_active_entry_cannot_return_to_draft(self):
        assert not can_transition(ENTRY_TRANSITIONS, EntryStatus.ACTIVE, EntryStatus.DRAFT)

    def test_pending_handover_moves_to_either_terminal_state(self):
        assert can_transition(HANDOVER_TRANSITIONS, HandoverStatus.PENDING, HandoverStatus.COMPLETED)
        assert can_transition(HANDOVER_TRANSITIONS, HandoverStatus.PENDING, HandoverStatus.CANCELLED)

    def test_completed_and_cancelled_handovers_are_terminal(self):
        assert is_terminal(HANDOVER_TRANSITIONS, HandoverStatus.COMPLETED)
        assert is_terminal(HANDOVER_TRANSITIONS, HandoverStatus.CANCELLED)
        assert not is_terminal(HANDOVER_TRANSITIONS, HandoverStatus.PENDING)


class TestReferenceIndex:
    """Category label resolution and reference name lookups"""

    def test_label_uses_joined_category_name(self):
        category = Category(code="emergency", name="Аварийные ситуации")
        refs = ReferenceIndex.build(categories=[category])
        entry = JournalEntry(category_id=category.id, category="emergency")

        assert refs.category_label(entry) == "Аварийные ситуации"

    def test_label_falls_back_to_legacy_code_label(self):
        refs = ReferenceIndex()
        entry = JournalEntry(category_id=uuid.uuid4(), category="relay_protection")

        assert refs.category_label(entry) == "РЗА и телемеханика"

    def test_unknown_legacy_code_is_shown_as_stored(self):
        assert ReferenceIndex().category_label(JournalEntry(category="substation_rounds")) == \
            "substation_rounds"

    def test_label_falls_back_to_other(self):
        assert ReferenceIndex().category_label(JournalEntry()) == "Прочие события"

    def test_equipment_name_resolves_or_is_none(self):
        equipment = Equipment(name="Выключатель В-10")
        refs = ReferenceIndex.build(equipment=[equipment])

        assert refs.equipment_name(JournalEntry(equipment_id=equipment.id)) == "Выключатель В-10"
        assert refs.equipment_name(JournalEntry(equipment_id=uuid.uuid4())) is None
        assert refs.location_name(JournalEntry()) is None


class TestOperator:
    def test_display_name_prefers_full_name(self):
        assert Operator(email="ivanov@plant.example", full_name="Иванов И.И.").display_name == "Иванов И.И."

    def test_display_name_falls_back_to_email_local_part(self):
        assert Operator(email="ivanov@plant.example").display_name == "ivanov"
