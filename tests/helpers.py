"""Test helper functions for dashsync tests.

These helpers build domain objects with sensible defaults while allowing
customization::

    from tests.helpers import make_dashboard, make_request, make_user

    def test_example():
        user = make_user(token="abc", auth_module="gitlab")
        request = make_request(make_dashboard(title="Ops"), user=user)
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx

from dashsync.models import Dashboard, SaveDashboardRequest, SignedInUser
from dashsync.types import RoleType


def make_dashboard(
    title: str = "Service Overview",
    uid: str = "",
    id: int = 0,
    version: int = 0,
    folder_id: int = 0,
    is_folder: bool = False,
    org_id: int = 1,
    plugin_id: str = "",
    **extra: Any,
) -> Dashboard:
    """Create a dashboard through its JSON model, like an API handler would."""
    data: dict[str, Any] = {"title": title, **extra}
    if uid:
        data["uid"] = uid
    if id:
        data["id"] = id
        data["version"] = version
    dashboard = Dashboard.from_json(data)
    dashboard.folder_id = folder_id
    dashboard.is_folder = is_folder
    dashboard.org_id = org_id
    dashboard.plugin_id = plugin_id
    return dashboard


def make_user(
    user_id: int = 7,
    org_id: int = 1,
    token: str = "",
    auth_module: str = "",
    org_role: RoleType = RoleType.EDITOR,
) -> SignedInUser:
    return SignedInUser(
        user_id=user_id,
        org_id=org_id,
        org_role=org_role,
        login=f"user{user_id}",
        auth_module=auth_module,
        token=token,
    )


def make_request(
    dashboard: Dashboard | None = None,
    user: SignedInUser | None = None,
    org_id: int = 1,
    message: str = "",
    overwrite: bool = False,
    **kwargs: Any,
) -> SaveDashboardRequest:
    return SaveDashboardRequest(
        org_id=org_id,
        dashboard=dashboard or make_dashboard(),
        user=user or make_user(org_id=org_id),
        message=message,
        overwrite=overwrite,
        **kwargs,
    )


def json_response(
    data: Any,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    return httpx.Response(status_code, json=data, headers=headers)


def route_transport(
    routes: dict[str, httpx.Response | Callable[[httpx.Request], httpx.Response]],
    requests: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """Create a mock transport answering by full URL.

    Args:
        routes: Response (or handler) per request URL. Unknown URLs get a 404.
        requests: Optional list that receives every request made.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.url}")
        if callable(route):
            return route(request)
        # A response instance must not be shared between requests
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    return httpx.MockTransport(handler)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)
