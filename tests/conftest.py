"""
Shift Journal - Test Configuration and Fixtures
"""
import os
import uuid
from datetime import datetime, timezone

import pytest

# Set testing environment before the application modules read settings
os.environ["ENVIRONMENT"] = "test"
os.environ["MCP_ENABLED"] = "false"
os.environ["ADMIN_EMAILS"] = "admin@plant.example"
os.environ["JWT_SECRET"] = "test-jwt-secret-key-for-testing"
os.environ["TZ_DEFAULT"] = "Europe/Moscow"
os.environ["STORE_BACKEND"] = "memory"

from fastapi.testclient import TestClient

from api import app, get_uow
from infrastructure import InMemoryDatabase, InMemoryUnitOfWork
from model import Caller, Category, Equipment, JournalEntry, Location


@pytest.fixture
def db() -> InMemoryDatabase:
    """A fresh, empty in-memory database for each test"""
    return InMemoryDatabase()


@pytest.fixture
def uow(db: InMemoryDatabase) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(db)


@pytest.fixture
def operator_a() -> Caller:
    return Caller(id=uuid.uuid4(), display_name="Иванов")


@pytest.fixture
def operator_b() -> Caller:
    return Caller(id=uuid.uuid4(), display_name="Петров")


@pytest.fixture
def admin() -> Caller:
    return Caller(id=uuid.uuid4(), display_name="Администратор", is_admin=True)


@pytest.fixture
def emergency_category(uow: InMemoryUnitOfWork) -> Category:
    category = Category(code="emergency", name="Аварийные ситуации", sort_order=1)
    uow.categories.save(category)
    return category


@pytest.fixture
def transformer(uow: InMemoryUnitOfWork) -> Equipment:
    equipment = Equipment(name="Трансформатор Т-1")
    uow.equipment.save(equipment)
    return equipment


@pytest.fixture
def substation(uow: InMemoryUnitOfWork) -> Location:
    location = Location(name="Подстанция №3")
    uow.locations.save(location)
    return location


@pytest.fixture
def make_entry():
    """Factory for unsaved journal entries with sensible defaults"""
    def _make(**overrides) -> JournalEntry:
        fields = {
            "title": "Плановый осмотр",
            "description": "Осмотр оборудования без замечаний",
            "author_name": "Иванов",
            "created_at": datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return JournalEntry(**fields)
    return _make


@pytest.fixture
def client(db: InMemoryDatabase):
    """Test client bound to the per-test in-memory database"""
    app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork(db)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
