"""Warble: serve a pre-built front-end bundle with server-side rendering.

Static assets, a favicon and gzip come from a fixed middleware chain;
every other URL is rendered by the bundle renderer and streamed back.

Basic usage::

    from warble import AppConfig, create_app, start_server

    app = create_app(AppConfig(is_production=True, root="./frontend"))
    handle = await start_server(app)
    await handle.ready
    ...
    await handle.close()

Or from the shell::

    warble run ./frontend --production
"""

import importlib

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BundleLoadError",
    "ConfigurationError",
    "Meta",
    "RenderContext",
    "RenderError",
    "Request",
    "Response",
    "ServerHandle",
    "StreamingResponse",
    "WarbleError",
    "create_app",
    "start_server",
]


_LAZY_IMPORTS: dict[str, str] = {
    "App": "warble.app",
    "AppConfig": "warble.config",
    "create_app": "warble.bootstrap",
    "ServerHandle": "warble.server.runner",
    "start_server": "warble.server.runner",
    "Meta": "warble.context",
    "RenderContext": "warble.context",
    "Request": "warble.http.request",
    "Response": "warble.http.response",
    "StreamingResponse": "warble.http.response",
    "WarbleError": "warble.errors",
    "ConfigurationError": "warble.errors",
    "BundleLoadError": "warble.errors",
    "RenderError": "warble.errors",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warble`` free of the template engine and the server.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(importlib.import_module(module_name), name)
