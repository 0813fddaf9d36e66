"""Tests for router composition."""

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from src.main import ROUTERS
from src.routing import (
    RouteConflictError,
    check_route_conflicts,
    include_routers,
    router_routes,
)


def endpoint(path: str):
    def handler():
        return {"route": path}

    return handler


def make_router(prefix: str, *routes: tuple[str, str]) -> APIRouter:
    router = APIRouter(prefix=prefix)
    for method, path in routes:
        router.add_api_route(path, endpoint(path), methods=[method])
    return router


def test_application_routes_do_not_conflict():
    routes = [route for router in ROUTERS for route in router_routes(router)]
    assert "/todos/{todo_id}" in {route.path for route in routes}
    check_route_conflicts(routes)


def test_duplicate_route_is_rejected():
    with pytest.raises(RouteConflictError):
        include_routers(
            FastAPI(),
            [make_router("/todos", ("GET", "")), make_router("/todos", ("GET", ""))],
        )


def test_parameter_route_shadowing_literal_route_is_rejected():
    with pytest.raises(RouteConflictError) as exc_info:
        include_routers(
            FastAPI(),
            [make_router("/todos", ("GET", "/{todo_id}"), ("GET", "/stats"))],
        )
    assert "/todos/stats" in str(exc_info.value)


def test_shadowing_across_routers_is_rejected():
    with pytest.raises(RouteConflictError):
        include_routers(
            FastAPI(),
            [
                make_router("/todos", ("GET", "/{todo_id}")),
                make_router("/todos", ("GET", "/stats")),
            ],
        )


def test_router_shadowed_by_docs_route_is_rejected():
    with pytest.raises(RouteConflictError):
        include_routers(FastAPI(), [make_router("", ("GET", "/docs"))])


def test_equivalent_parameter_routes_are_rejected():
    with pytest.raises(RouteConflictError):
        include_routers(
            FastAPI(),
            [make_router("/items", ("DELETE", "/{item_id:int}"), ("DELETE", "/{other:int}"))],
        )


def test_conflict_mounts_nothing():
    app = FastAPI()
    with pytest.raises(RouteConflictError):
        include_routers(
            app,
            [
                make_router("/health", ("GET", "")),
                make_router("/todos", ("GET", "/{todo_id}"), ("GET", "/stats")),
            ],
        )
    with TestClient(app) as client:
        assert client.get("/health").status_code == 404
        assert client.get("/todos/stats").status_code == 404


def test_literal_before_parameter_is_allowed():
    app = FastAPI()
    include_routers(
        app,
        [make_router("/todos", ("GET", "/stats"), ("GET", "/{todo_id}"))],
    )
    with TestClient(app) as client:
        assert client.get("/todos/stats").json() == {"route": "/stats"}
        assert client.get("/todos/7").json() == {"route": "/{todo_id}"}


def test_same_path_different_methods_is_allowed():
    include_routers(
        FastAPI(),
        [make_router("/todos", ("GET", "/{todo_id}"), ("DELETE", "/{todo_id}"))],
    )


def test_typed_parameter_does_not_shadow_other_types():
    include_routers(
        FastAPI(),
        [make_router("/todos", ("GET", "/{todo_id:int}"), ("GET", "/recent"))],
    )


def test_router_with_mount_is_rejected():
    router = make_router("/todos", ("GET", ""))
    router.mount("/static", FastAPI())
    with pytest.raises(ValueError):
        router_routes(router)
