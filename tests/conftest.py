"""Shared fixtures: a fixed clock, in-memory storage and a wired engine."""

from datetime import date

import pytest

from budget_engine.config import Settings
from budget_engine.orchestrator import BudgetEngine
from budget_engine.services.storage import InMemoryStorage

TODAY = date(2025, 3, 15)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def engine(storage, clock) -> BudgetEngine:
    return BudgetEngine(storage=storage, settings=Settings(), clock=clock)
