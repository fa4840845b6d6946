"""
Tests for reference data use cases (categories, equipment, locations)
"""
import uuid

import pytest

from application import (
    AuthorizationError,
    CreateCategoryCommand,
    CreateCategoryUseCase,
    CreateEquipmentUseCase,
    CreateLocationUseCase,
    CreateNamedRecordCommand,
    ListCategoriesUseCase,
    ListEquipmentUseCase,
    ListLocationsUseCase,
    MoveCategoryCommand,
    MoveCategoryUseCase,
    NotFoundError,
    UpdateCategoryCommand,
    UpdateCategoryUseCase,
    UpdateEquipmentUseCase,
    UpdateNamedRecordCommand,
    ValidationError,
    _CreateNamedRecord,
)


def _category(uow, admin, code, sort_order):
    return CreateCategoryUseCase().execute(
        CreateCategoryCommand(code=code, name=code.upper(), sort_order=sort_order, caller=admin),
        uow,
    )


class TestCategories:
    """Category maintenance and ordering"""

    def test_list_is_ordered_by_sort_order(self, uow, admin):
        _category(uow, admin, "b", 2)
        _category(uow, admin, "a", 1)
        _category(uow, admin, "c", 3)

        assert [c.code for c in ListCategoriesUseCase().execute(uow)] == ["a", "b", "c"]

    def test_non_admin_cannot_create(self, uow, operator_a):
        with pytest.raises(AuthorizationError):
            _category(uow, operator_a, "a", 1)
        assert uow.categories.list_all() == []

    def test_duplicate_code_is_validation_error(self, uow, admin):
        _category(uow, admin, "a", 1)
        with pytest.raises(ValidationError):
            _category(uow, admin, "a", 2)

    def test_blank_name_is_validation_error(self, uow, admin):
        with pytest.raises(ValidationError):
            CreateCategoryUseCase().execute(
                CreateCategoryCommand(code="a", name=" ", caller=admin), uow
            )

    def test_move_down_swaps_sort_order(self, uow, admin):
        a = _category(uow, admin, "a", 1)
        _category(uow, admin, "b", 2)

        result = MoveCategoryUseCase().execute(
            MoveCategoryCommand(category_id=uuid.UUID(a.id), direction="down", caller=admin), uow
        )

        assert [c.code for c in result] == ["b", "a"]
        assert [c.code for c in ListCategoriesUseCase().execute(uow)] == ["b", "a"]

    def test_move_first_up_is_noop(self, uow, admin):
        a = _category(uow, admin, "a", 1)
        _category(uow, admin, "b", 2)

        MoveCategoryUseCase().execute(
            MoveCategoryCommand(category_id=uuid.UUID(a.id), direction="up", caller=admin), uow
        )
        assert [c.sort_order for c in ListCategoriesUseCase().execute(uow)] == [1, 2]

    def test_move_rejects_unknown_direction(self, uow, admin):
        a = _category(uow, admin, "a", 1)
        with pytest.raises(ValidationError):
            MoveCategoryUseCase().execute(
                MoveCategoryCommand(category_id=uuid.UUID(a.id), direction="left", caller=admin),
                uow,
            )

    def test_deactivated_category_is_hidden_from_active_list(self, uow, admin):
        a = _category(uow, admin, "a", 1)
        _category(uow, admin, "b", 2)

        UpdateCategoryUseCase().execute(
            UpdateCategoryCommand(category_id=uuid.UUID(a.id), is_active=False, caller=admin), uow
        )

        assert [c.code for c in ListCategoriesUseCase().execute(uow, active_only=True)] == ["b"]
        assert len(ListCategoriesUseCase().execute(uow)) == 2

    def test_failed_update_leaves_category_unchanged(self, uow, admin):
        a = _category(uow, admin, "a", 1)
        with pytest.raises(ValidationError):
            UpdateCategoryUseCase().execute(
                UpdateCategoryCommand(category_id=uuid.UUID(a.id), code="z", name="  ",
                                      caller=admin),
                uow,
            )
        assert ListCategoriesUseCase().execute(uow)[0].code == "a"

    def test_update_unknown_category_is_not_found(self, uow, admin):
        with pytest.raises(NotFoundError):
            UpdateCategoryUseCase().execute(
                UpdateCategoryCommand(category_id=uuid.uuid4(), name="X", caller=admin), uow
            )


class TestEquipmentAndLocations:
    """Named reference records"""

    def test_shared_base_requires_table_hooks(self):
        with pytest.raises(TypeError):
            _CreateNamedRecord()
        assert isinstance(CreateLocationUseCase(), _CreateNamedRecord)

    def test_equipment_list_is_ordered_by_name(self, uow, admin):
        for name in ("Трансформатор", "Выключатель", "Разъединитель"):
            CreateEquipmentUseCase().execute(CreateNamedRecordCommand(name=name, caller=admin), uow)

        names = [e.name for e in ListEquipmentUseCase().execute(uow)]
        assert names == ["Выключатель", "Разъединитель", "Трансформатор"]

    def test_rename_and_deactivate_equipment(self, uow, admin):
        created = CreateEquipmentUseCase().execute(
            CreateNamedRecordCommand(name="Т-1", caller=admin), uow
        )
        updated = UpdateEquipmentUseCase().execute(
            UpdateNamedRecordCommand(record_id=uuid.UUID(created.id), name="Т-2",
                                     is_active=False, caller=admin),
            uow,
        )

        assert updated.name == "Т-2"
        assert ListEquipmentUseCase().execute(uow, active_only=True) == []

    def test_location_requires_admin(self, uow, operator_a):
        with pytest.raises(AuthorizationError):
            CreateLocationUseCase().execute(
                CreateNamedRecordCommand(name="ПС-3", caller=operator_a), uow
            )

    def test_location_requires_name(self, uow, admin):
        with pytest.raises(ValidationError):
            CreateLocationUseCase().execute(CreateNamedRecordCommand(name="", caller=admin), uow)
        assert ListLocationsUseCase().execute(uow) == []

    def test_update_unknown_equipment_is_not_found(self, uow, admin):
        with pytest.raises(NotFoundError):
            UpdateEquipmentUseCase().execute(
                UpdateNamedRecordCommand(record_id=uuid.uuid4(), name="X", caller=admin), uow
            )
