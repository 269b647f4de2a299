"""A small WSGI router with path parameters, named routes and REST resources.

Patterns are made of ``/``-separated segments; a segment starting with ``:``
captures one path segment under that name (``/users/:id``).  Routes are
tried in registration order and the first one whose path and method match
handles the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Protocol, runtime_checkable
from urllib.parse import quote

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]
Middleware = Callable[[WSGIApp], WSGIApp]

PARAMS_KEY = "flowmvc.route_params"

# Characters a path segment keeps unescaped besides the unreserved set.
_SEGMENT_SAFE = "$&+:=@"


def params_from_environ(environ: dict | None) -> dict[str, str]:
    """Return the route parameters stored on a request, or an empty dict."""
    if not environ:
        return {}
    params = environ.get(PARAMS_KEY)
    if isinstance(params, dict):
        return params
    return {}


def param(environ: dict | None, name: str) -> str:
    """Return one path parameter by name, or an empty string when absent."""
    return params_from_environ(environ).get(name, "")


@runtime_checkable
class ResourceController(Protocol):
    """The actions a controller provides to be wired by ``Router.resources``.

    Each action is a WSGI application.
    """

    def index(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """List the resources."""

    def new(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """Show the form for a new resource."""

    def create(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """Create a resource."""

    def show(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """Show one resource."""

    def edit(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """Show the form for editing a resource."""

    def update(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """Update a resource."""

    def destroy(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        """Delete a resource."""


@dataclass(frozen=True)
class _Route:
    method: str
    pattern: str
    segments: tuple[str, ...]
    handler: WSGIApp
    name: str = ""
    middleware: tuple[Middleware, ...] = field(default_factory=tuple)


def _split_path(pattern: str) -> tuple[str, ...]:
    trimmed = pattern.strip("/")
    if not trimmed:
        return ()
    return tuple(trimmed.split("/"))


def _normalize_path(path: str) -> str:
    if path == "/":
        return path
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


def _match_route(segments: tuple[str, ...], path: str) -> dict[str, str] | None:
    if not segments:
        return {} if path == "/" else None
    trimmed = path.strip("/")
    if not trimmed:
        return None
    parts = trimmed.split("/")
    if len(parts) != len(segments):
        return None
    params: dict[str, str] = {}
    for seg, part in zip(segments, parts):
        if seg == "":
            if part != "":
                return None
        elif seg.startswith(":"):
            name = seg[1:]
            if not name:
                return None
            params[name] = part
        elif seg != part:
            return None
    return params


def _plain_error(start_response: Callable[..., Any], status: str, message: str) -> list[bytes]:
    body = (message + "\n").encode("utf-8")
    start_response(
        status,
        [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("X-Content-Type-Options", "nosniff"),
            ("Content-Length", str(len(body))),
        ],
    )
    return [body]


class Router:
    """A WSGI application dispatching requests to registered routes."""

    def __init__(self) -> None:
        self._routes: list[_Route] = []
        self.not_found: WSGIApp | None = None
        self.method_not_allowed: WSGIApp | None = None

    def _add(
        self,
        method: str,
        pattern: str,
        handler: WSGIApp,
        name: str = "",
        middleware: Iterable[Middleware] = (),
    ) -> None:
        if not pattern.startswith("/"):
            raise ValueError("router: pattern must begin with '/'")
        self._routes.append(
            _Route(
                method=method.upper(),
                pattern=pattern,
                segments=_split_path(pattern),
                handler=handler,
                name=name,
                middleware=tuple(middleware),
            )
        )

    def _check_name(self, name: str) -> None:
        if not name:
            raise ValueError("router: route name cannot be empty")
        if any(route.name == name for route in self._routes):
            raise ValueError(f"router: duplicate route name {name}")

    def handle(self, method: str, pattern: str, handler: WSGIApp) -> None:
        """Register a handler for a method and pattern."""
        self._add(method, pattern, handler)

    def handle_with(self, method: str, pattern: str, handler: WSGIApp, *args: Middleware) -> None:
        """Register a handler with per-route middleware, first given outermost."""
        self._add(method, pattern, handler, middleware=args)

    def handle_named(self, name: str, method: str, pattern: str, handler: WSGIApp) -> None:
        """Register a named route; names must be unique and non-empty."""
        self._check_name(name)
        self._add(method, pattern, handler, name=name)

    def handle_named_with(
        self, name: str, method: str, pattern: str, handler: WSGIApp, *args: Middleware
    ) -> None:
        """Register a named route with per-route middleware."""
        self._check_name(name)
        self._add(method, pattern, handler, name=name, middleware=args)

    def get_named(self, name: str, pattern: str, handler: WSGIApp) -> None:
        self.handle_named(name, "GET", pattern, handler)

    def post_named(self, name: str, pattern: str, handler: WSGIApp) -> None:
        self.handle_named(name, "POST", pattern, handler)

    def put_named(self, name: str, pattern: str, handler: WSGIApp) -> None:
        self.handle_named(name, "PUT", pattern, handler)

    def patch_named(self, name: str, pattern: str, handler: WSGIApp) -> None:
        self.handle_named(name, "PATCH", pattern, handler)

    def delete_named(self, name: str, pattern: str, handler: WSGIApp) -> None:
        self.handle_named(name, "DELETE", pattern, handler)

    def get_with(self, pattern: str, handler: WSGIApp, *args: Middleware) -> None:
        self.handle_with("GET", pattern, handler, *args)

    def post_with(self, pattern: str, handler: WSGIApp, *args: Middleware) -> None:
        self.handle_with("POST", pattern, handler, *args)

    def put_with(self, pattern: str, handler: WSGIApp, *args: Middleware) -> None:
        self.handle_with("PUT", pattern, handler, *args)

    def patch_with(self, pattern: str, handler: WSGIApp, *args: Middleware) -> None:
        self.handle_with("PATCH", pattern, handler, *args)

    def delete_with(self, pattern: str, handler: WSGIApp, *args: Middleware) -> None:
        self.handle_with("DELETE", pattern, handler, *args)

    def get(self, pattern: str, handler: WSGIApp) -> None:
        self.handle("GET", pattern, handler)

    def post(self, pattern: str, handler: WSGIApp) -> None:
        self.handle("POST", pattern, handler)

    def put(self, pattern: str, handler: WSGIApp) -> None:
        self.handle("PUT", pattern, handler)

    def patch(self, pattern: str, handler: WSGIApp) -> None:
        self.handle("PATCH", pattern, handler)

    def delete(self, pattern: str, handler: WSGIApp) -> None:
        self.handle("DELETE", pattern, handler)

    def resources(self, base: str, controller: ResourceController) -> None:
        """Wire a controller to the conventional RESTful routes under ``base``."""
        if not base:
            raise ValueError("router: resources base cannot be empty")
        base = base.strip("/")
        member = f"/{base}/:id"

        self.get_named(f"{base}_index", f"/{base}", controller.index)
        self.get_named(f"{base}_new", f"/{base}/new", controller.new)
        self.post_named(f"{base}_create", f"/{base}", controller.create)

        self.get_named(f"{base}_show", member, controller.show)
        self.get_named(f"{base}_edit", f"/{base}/:id/edit", controller.edit)
        self.put_named(f"{base}_update", member, controller.update)
        self.patch_named(f"{base}_patch", member, controller.update)
        self.delete_named(f"{base}_destroy", member, controller.destroy)

    def url(self, name: str, params: dict[str, str] | None = None) -> str:
        """Build the path of a named route, escaping parameter values.

        Raises ``KeyError`` for an unknown route or a missing parameter.
        """
        params = params or {}
        route = next((r for r in self._routes if r.name == name), None)
        if route is None:
            raise KeyError(f"router: unknown route {name}")
        if not route.segments:
            return "/"
        parts = []
        for seg in route.segments:
            if seg.startswith(":"):
                key = seg[1:]
                if key not in params:
                    raise KeyError(f"router: missing param {key} for route {name}")
                parts.append(quote(params[key], safe=_SEGMENT_SAFE))
            else:
                parts.append(seg)
        return "/" + "/".join(parts)

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        path = _normalize_path(environ.get("PATH_INFO", "") or "")
        method = environ.get("REQUEST_METHOD", "GET")
        method_mismatch = False

        for route in self._routes:
            params = _match_route(route.segments, path)
            if params is None:
                continue
            if route.method != method:
                method_mismatch = True
                continue
            app: WSGIApp = route.handler
            for mw in reversed(route.middleware):
                app = mw(app)
            return app({**environ, PARAMS_KEY: params}, start_response)

        if method_mismatch:
            if self.method_not_allowed is not None:
                return self.method_not_allowed(environ, start_response)
            return _plain_error(start_response, "405 Method Not Allowed", "Method Not Allowed")

        if self.not_found is not None:
            return self.not_found(environ, start_response)
        return _plain_error(start_response, "404 Not Found", "404 page not found")