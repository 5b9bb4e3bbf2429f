"""
core/navigation.py -- Route table and the navigation guard.

Every route is a RouteDescriptor declared once in ROUTES. The only routing
decision is whether a transition may complete:

  requires_auth false              -> Proceed
  requires_auth true, session set  -> Proceed
  requires_auth true, no session   -> RedirectTo("/login")

The guard receives the session as an object with a get() method (the
SessionStore from auth/session.py in practice). It never writes to it and
never raises. core/ does not import auth/, so the dependency is structural.

Pattern: Data class for routes and decisions (pure data, zero logic);
the guard and the router do the work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Union

logger = logging.getLogger("condestyle.navigation")

LOGIN_PATH = "/login"


class SessionReader(Protocol):
    def get(self) -> Optional[Any]: ...


# ---------------------------------------------------------------------------
# Route descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RouteDescriptor:
    path: str
    name: str
    view: str
    requires_auth: bool = False


ROUTES: tuple[RouteDescriptor, ...] = (
    RouteDescriptor(path="/", name="Home", view="home"),
    RouteDescriptor(path=LOGIN_PATH, name="Login", view="login"),
    RouteDescriptor(path="/productos", name="Products", view="products"),
    RouteDescriptor(path="/users", name="Users", view="users", requires_auth=True),
)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Proceed:
    pass


@dataclass(frozen=True)
class RedirectTo:
    path: str


Decision = Union[Proceed, RedirectTo]


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------


class NavigationGuard:
    """Decides, for every attempted transition, whether to proceed or redirect.

    Usage:
        guard = NavigationGuard(session_store)
        decision = guard.evaluate(target_route, current_route)
        if isinstance(decision, RedirectTo):
            ...
    """

    def __init__(self, session: SessionReader, login_path: str = LOGIN_PATH) -> None:
        self.session = session
        self.login_path = login_path

    def evaluate(self, target: RouteDescriptor, current: Optional[RouteDescriptor] = None) -> Decision:
        """Return Proceed or RedirectTo(login_path) for a transition to target.

        current is None on the initial load. It does not influence the
        decision but is logged so redirects can be traced back.
        """
        if not target.requires_auth:
            return Proceed()
        if self.session.get():
            return Proceed()
        logger.info(
            "No active session for %s (from %s), redirecting to %s",
            target.path,
            current.path if current else "<initial>",
            self.login_path,
        )
        return RedirectTo(self.login_path)


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


def _normalize(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0] or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


class Router:
    """Immutable route table with path/name lookup and guarded navigation."""

    def __init__(self, routes: Iterable[RouteDescriptor] = ROUTES) -> None:
        self.routes: tuple[RouteDescriptor, ...] = tuple(routes)
        self._by_path = {r.path: r for r in self.routes}
        self._by_name = {r.name: r for r in self.routes}
        if len(self._by_path) != len(self.routes):
            raise ValueError("Route paths must be unique.")
        if len(self._by_name) != len(self.routes):
            raise ValueError("Route names must be unique.")

    def resolve(self, path: str) -> Optional[RouteDescriptor]:
        """Return the route for path, or None. Query strings and trailing slashes are ignored."""
        return self._by_path.get(_normalize(path))

    def by_name(self, name: str) -> Optional[RouteDescriptor]:
        return self._by_name.get(name)

    def navigate(
        self,
        path: str,
        guard: NavigationGuard,
        current: Optional[RouteDescriptor] = None,
    ) -> tuple[RouteDescriptor, Decision]:
        """Resolve path and run the guard for the transition.

        Called for every transition, including the initial one (current=None).
        Raises LookupError for paths that are not in the table.
        """
        target = self.resolve(path)
        if target is None:
            raise LookupError(f"No route for {path!r}")
        return target, guard.evaluate(target, current)


router = Router()
