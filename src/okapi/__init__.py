"""okapi: composable handler chains on ASGI.

A request is matched against an ordered route table; the first rule
that fits runs its chain of handlers.  Each handler can answer, pass the
request on, or adjust the per-request context and then pass it on.

Basic usage::

    from okapi import App
    from okapi.handlers import chain, set_status, text

    app = App()
    app.get("/ping", text("pong"))
    app.fallback(chain(set_status(400), text("Not found")))

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "AppContext",
    "ConfigurationError",
    "HTTPError",
    "HttpContext",
    "NotFound",
    "OkapiError",
    "Pipeline",
    "Request",
    "Response",
    "Settings",
    "Template",
    "chain",
    "load_settings",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import okapi`` fast while providing a clean top-level API.
    """
    if name == "App":
        from okapi.app import App

        return App

    if name in ("AppConfig", "Settings", "load_settings"):
        from okapi import config as _config

        return getattr(_config, name)

    if name in ("AppContext", "HttpContext"):
        from okapi import context as _context

        return getattr(_context, name)

    if name in ("ConfigurationError", "HTTPError", "NotFound", "OkapiError"):
        from okapi import errors as _errors

        return getattr(_errors, name)

    if name in ("Pipeline", "chain"):
        from okapi import pipeline as _pipeline

        return getattr(_pipeline, name)

    if name == "Request":
        from okapi.http.request import Request

        return Request

    if name == "Response":
        from okapi.http.response import Response

        return Response

    if name == "Template":
        from okapi.templating import Template

        return Template

    msg = f"module 'okapi' has no attribute {name!r}"
    raise AttributeError(msg)
