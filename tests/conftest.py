"""Shared pytest fixtures for dashsync tests.

The fixtures wire a :class:`DashboardService` to in-memory fakes that share
one ``events`` list, so a test can assert both on state and on the order
of collaborator calls::

    def test_example(service, store, events):
        service.save_dashboard(make_request())
        assert events == ["alerts.validate", "store.save_dashboard", "alerts.update"]
"""

from __future__ import annotations

import pytest

from dashsync.dashboard_service import DashboardService
from dashsync.mirror import DashboardMirror
from tests.mocks import (
    InMemoryDashboardStore,
    MockAlertService,
    MockConnector,
    MockGuardianFactory,
)


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def store(events: list[str]) -> InMemoryDashboardStore:
    return InMemoryDashboardStore(events=events)


@pytest.fixture
def alerts(events: list[str]) -> MockAlertService:
    return MockAlertService(events=events)


@pytest.fixture
def guardian_factory() -> MockGuardianFactory:
    return MockGuardianFactory()


@pytest.fixture
def connector(events: list[str]) -> MockConnector:
    return MockConnector(events=events)


@pytest.fixture
def mirror(connector: MockConnector, store: InMemoryDashboardStore) -> DashboardMirror:
    return DashboardMirror({"gitlab": connector}, store)


@pytest.fixture
def service(
    store: InMemoryDashboardStore,
    alerts: MockAlertService,
    guardian_factory: MockGuardianFactory,
    mirror: DashboardMirror,
) -> DashboardService:
    return DashboardService(store, alerts, guardian_factory, mirror)
