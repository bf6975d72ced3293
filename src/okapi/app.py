"""okapi application class.

Mutable during setup (route registration, middleware, hooks).
Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from okapi._internal.asgi import Receive, Scope, Send
from okapi._internal.invoke import invoke
from okapi.config import AppConfig
from okapi.context import AppContext
from okapi.errors import ConfigurationError
from okapi.handlers import endpoint, set_status, text
from okapi.pipeline import Handler, Pipeline, chain
from okapi.routing.route import Route
from okapi.routing.router import Router, compile_pattern
from okapi.server.errors import ErrorHandlers
from okapi.server.handler import handle_request
from okapi.templating import create_environment


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    pipeline: Pipeline
    methods: tuple[str, ...] | None
    name: str | None


class App:
    """The okapi application.

    Routes are tried in registration order; the first whose method and
    path match runs its handler chain.  When nothing matches, the
    fallback chain runs (``404 Not Found`` unless replaced).

    Thread safety:
        The setup phase is single-threaded (registration at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even when several server threads call
        ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_app_context",
        "_error_handlers",
        "_fallback",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        "_router",
        "_services",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._middleware_list: list[Handler] = []
        self._fallback: Pipeline = chain(set_status(404), text("Not Found"))
        self._error_handlers: ErrorHandlers = {}
        self._services: dict[type, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: Router | None = None
        self._middleware: Pipeline = Pipeline()
        self._app_context: AppContext | None = None

    # -- Route registration --

    def add_route(
        self,
        path: str,
        *handlers: Handler,
        methods: Iterable[str] | None = None,
        name: str | None = None,
    ) -> None:
        """Register a rule that runs *handlers* in order.

        ``methods=None`` accepts every HTTP method.
        """
        self._check_not_frozen()
        if not handlers:
            msg = f"Route {path!r} needs at least one handler."
            raise ConfigurationError(msg)
        compile_pattern(path)  # surface pattern errors at registration
        self._pending_routes.append(
            _PendingRoute(
                path,
                chain(*handlers),
                tuple(m.upper() for m in methods) if methods is not None else None,
                name,
            )
        )

    def get(self, path: str, *handlers: Handler, name: str | None = None) -> None:
        """Register a ``GET`` (and ``HEAD``) rule."""
        self.add_route(path, *handlers, methods=("GET", "HEAD"), name=name)

    def post(self, path: str, *handlers: Handler, name: str | None = None) -> None:
        self.add_route(path, *handlers, methods=("POST",), name=name)

    def put(self, path: str, *handlers: Handler, name: str | None = None) -> None:
        self.add_route(path, *handlers, methods=("PUT",), name=name)

    def delete(self, path: str, *handlers: Handler, name: str | None = None) -> None:
        self.add_route(path, *handlers, methods=("DELETE",), name=name)

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] | None = ("GET", "HEAD"),
        name: str | None = None,
        guards: Iterable[Handler] = (),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a plain function as an endpoint via decorator.

        The function is called as ``func(ctx, **path_params)`` after
        *guards* have all delegated; its return value is negotiated into
        a response (see ``okapi.handlers.negotiate``)::

            @app.route("/user/{id:int}", guards=[must_be_admin])
            def show_user(ctx, id: int) -> str:
                return f"User Id: {id}"
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add_route(path, *guards, endpoint(func), methods=methods, name=name)
            return func

        return decorator

    def fallback(self, *handlers: Handler) -> None:
        """Replace the chain that runs when no route matches."""
        self._check_not_frozen()
        if not handlers:
            msg = "fallback() needs at least one handler."
            raise ConfigurationError(msg)
        self._fallback = chain(*handlers)

    # -- Middleware --

    def add_middleware(self, middleware: Handler) -> None:
        """Add a handler that wraps every request, fallback included.

        Middleware runs in registration order, outermost first.
        """
        self._check_not_frozen()
        if not callable(middleware):
            msg = f"Middleware must be callable, got {type(middleware).__name__}"
            raise ConfigurationError(msg)
        self._middleware_list.append(middleware)

    # -- Error handlers --

    def error_handler(
        self,
        code_or_exception: int | type[BaseException],
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register an error handler via decorator.

        Keyed by exception class (matched along the MRO) or by status
        code; ``500`` catches every unexpected exception.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Services --

    def provide(self, annotation: type, instance: Any) -> None:
        """Make *instance* available as ``ctx.app.get_service(annotation)``."""
        self._check_not_frozen()
        self._services[annotation] = instance

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def routes(self) -> tuple[Route, ...]:
        """Compiled rules in matching order (freezes the app)."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.routes

    def url_for(self, name: str, **params: Any) -> str:
        """Build the path of the route registered as *name*."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.url_for(name, **params)

    # -- Running --

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        reload: bool = False,
        app_path: str | None = None,
    ) -> None:
        """Compile the app and serve it with uvicorn.

        Args:
            host: Override bind host.
            port: Override bind port.
            reload: Restart on source changes (needs *app_path*).
            app_path: ``"module:attribute"`` import string for reloading.
        """
        from okapi.server.dev import run_server

        self._ensure_frozen()
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=reload or self.config.debug,
            app_path=app_path,
            log_level=self.config.log_level,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._router is not None
        assert self._app_context is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
            fallback=self._fallback,
            app_context=self._app_context,
            error_handlers=self._error_handlers,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs the startup/shutdown hooks and signals completion.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        router = Router()
        for pending in self._pending_routes:
            router.add(pending.path, pending.pipeline, methods=pending.methods, name=pending.name)
        router.compile()
        self._router = router

        self._middleware = chain(*self._middleware_list)
        self._app_context = AppContext(
            config=self.config,
            services=MappingProxyType(dict(self._services)),
            templates=create_environment(self.config),
        )
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and hooks before calling app.run()."
            )
            raise RuntimeError(msg)
