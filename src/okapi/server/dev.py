"""Serve an okapi app with uvicorn."""

from __future__ import annotations

from typing import Any


def run_server(
    app: Any,
    host: str,
    port: int,
    *,
    reload: bool = False,
    app_path: str | None = None,
    log_level: str = "info",
) -> None:
    """Start uvicorn with the given app.

    uvicorn reloads only from an import string, so *reload* needs
    *app_path* (``"module:attribute"``); without it the live app object
    is served as is.

    Args:
        app: ASGI callable (an okapi ``App``).
        host: Bind host address.
        port: Bind port number.
        reload: Restart the worker when source files change.
        app_path: Import string used for reloading.
        log_level: uvicorn log level.
    """
    import uvicorn

    if reload and app_path:
        uvicorn.run(app_path, host=host, port=port, reload=True, log_level=log_level)
        return
    uvicorn.run(app, host=host, port=port, log_level=log_level)
