"""Tests for DashboardMirror."""

import json

import pytest

from dashsync.errors import DashboardNotFoundError, DashboardSyncError
from dashsync.mirror import DashboardMirror
from dashsync.models import Dashboard
from dashsync.types import DashboardAction
from tests.helpers import make_dashboard, make_user
from tests.mocks import InMemoryDashboardStore, MockConnector


class FailingLookupStore(InMemoryDashboardStore):
    def get_dashboard(self, dashboard_id: int) -> Dashboard | None:
        raise DashboardNotFoundError()


class TestFolderName:
    """Tests for DashboardMirror.folder_name."""

    def test_root_folder(self, mirror: DashboardMirror) -> None:
        assert mirror.folder_name(make_dashboard(folder_id=0)) == "General"

    def test_existing_folder(self, mirror: DashboardMirror, store: InMemoryDashboardStore) -> None:
        store.add(make_dashboard(id=4, title="Platform", is_folder=True))

        assert mirror.folder_name(make_dashboard(folder_id=4)) == "Platform"

    def test_missing_folder(self, mirror: DashboardMirror) -> None:
        assert mirror.folder_name(make_dashboard(folder_id=4)) == "unknown"

    def test_not_found_error(self, connector: MockConnector) -> None:
        mirror = DashboardMirror({"gitlab": connector}, FailingLookupStore())

        assert mirror.folder_name(make_dashboard(folder_id=4)) == "unknown"


class TestBuildOptions:
    """Tests for DashboardMirror.build_options."""

    def test_fields(self, mirror: DashboardMirror) -> None:
        dashboard = make_dashboard(title="Request Latency", panels=[])

        options = mirror.build_options(dashboard, DashboardAction.UPDATE, 3, "msg")

        assert options.action == DashboardAction.UPDATE
        assert options.message == "msg"
        assert options.title == "Request Latency"
        assert options.name == "request-latency"
        assert options.folder == "General"
        assert options.org_id == 3
        assert json.loads(options.dashboard) == {
            "title": "Request Latency",
            "panels": [],
            "version": 0,
        }

    def test_name_from_title_without_slug(self, mirror: DashboardMirror) -> None:
        dashboard = make_dashboard(title="CPU / Memory")
        dashboard.slug = ""

        assert mirror.build_options(dashboard, DashboardAction.CREATE, 1).name == "cpu-memory"

    def test_non_latin_titles_get_distinct_names(self, mirror: DashboardMirror) -> None:
        first = mirror.build_options(
            Dashboard.from_json({"title": "Панель"}), DashboardAction.CREATE, 1
        )
        second = mirror.build_options(
            Dashboard.from_json({"title": "服务"}), DashboardAction.CREATE, 1
        )

        assert first.name != ""
        assert second.name != ""
        assert first.name != second.name

    def test_content_keeps_utf8(self, mirror: DashboardMirror) -> None:
        options = mirror.build_options(
            Dashboard.from_json({"title": "Café"}), DashboardAction.CREATE, 1
        )

        assert '"title": "Café"' in options.dashboard
        assert "\\u" not in options.dashboard


class TestSync:
    """Tests for DashboardMirror.sync."""

    def test_dispatches_to_users_provider(
        self, mirror: DashboardMirror, connector: MockConnector
    ) -> None:
        user = make_user(token="tok", auth_module="gitlab")

        mirror.sync(make_dashboard(), DashboardAction.CREATE, user, 1)

        options, token = connector.updates[0]
        assert options.action == DashboardAction.CREATE
        assert token == "tok"

    def test_unknown_provider(self, mirror: DashboardMirror, connector: MockConnector) -> None:
        user = make_user(token="tok", auth_module="google")

        with pytest.raises(DashboardSyncError):
            mirror.sync(make_dashboard(), DashboardAction.CREATE, user, 1)

        assert connector.updates == []

    def test_connector_error_propagated(self, store: InMemoryDashboardStore) -> None:
        connector = MockConnector(fail_on={DashboardAction.DELETE})
        mirror = DashboardMirror({"gitlab": connector}, store)
        user = make_user(token="tok", auth_module="gitlab")

        with pytest.raises(DashboardSyncError):
            mirror.sync(make_dashboard(), DashboardAction.DELETE, user, 1)
