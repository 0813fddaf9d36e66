"""Router mounting with a startup check against shadowed routes."""

import logging
from collections.abc import Iterable, Sequence

from fastapi import APIRouter, FastAPI
from starlette.convertors import FloatConvertor, IntegerConvertor, UUIDConvertor
from starlette.routing import Route

logger = logging.getLogger(__name__)

_SAMPLE_VALUES = {
    IntegerConvertor: "1",
    FloatConvertor: "1.5",
    UUIDConvertor: "00000000-0000-0000-0000-000000000000",
}


class RouteConflictError(RuntimeError):
    """Two routes would compete for the same method and path."""


def _sample_path(route: Route) -> str:
    """A concrete path the route itself would match."""
    values = {
        name: _SAMPLE_VALUES.get(type(convertor), "sample")
        for name, convertor in route.param_convertors.items()
    }
    return route.path_format.format(**values)


def router_routes(router: APIRouter) -> list[Route]:
    """Routes a router contributes, with the router's prefix already applied.

    Only flat routers are supported: a router that includes other routers
    is rejected, because its nested paths cannot be read back reliably.
    """
    routes = []
    for route in router.routes:
        if not isinstance(route, Route):
            raise ValueError(
                f"Router {router.prefix or '/'} contains {type(route).__name__}; "
                "include nested routers directly on the app"
            )
        routes.append(route)
    return routes


def check_route_conflicts(routes: Sequence[Route]) -> None:
    """Raise RouteConflictError if an earlier route shadows a later one.

    Starlette dispatches to the first matching route, so a later route whose
    own paths are already matched by an earlier route with an overlapping
    method would never run. ``routes`` must be in mount order.
    """
    for index, later in enumerate(routes):
        sample = _sample_path(later)
        for earlier in routes[:index]:
            if not (earlier.methods or set()) & (later.methods or set()):
                continue
            if earlier.path_regex.match(sample):
                raise RouteConflictError(
                    f"{sorted(later.methods)} {later.path} is shadowed by {earlier.path}"
                )


def include_routers(app: FastAPI, routers: Iterable[APIRouter]) -> None:
    """Verify dispatch stays unambiguous, then mount routers in order.

    Routes already on the app (the docs pages) come first in the check, as
    they do at dispatch. Nothing is mounted when a conflict is found.
    """
    routers = list(routers)
    routes = [route for route in app.router.routes if isinstance(route, Route)]
    for router in routers:
        routes.extend(router_routes(router))
    check_route_conflicts(routes)

    for router in routers:
        app.include_router(router)
    logger.debug(f"Mounted {len(routes)} routes from {len(routers)} routers")
