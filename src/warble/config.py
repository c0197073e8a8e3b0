"""Server configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

_THIRTY_DAYS = 60 * 60 * 24 * 30
_ONE_YEAR = 60 * 60 * 24 * 365


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(is_production=True, port=3000, root="./frontend")

    Relative paths are anchored at ``root`` via :meth:`resolve`.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    is_production: bool = False

    # Project layout
    root: str | Path = "."
    dist_dir: str | Path = "dist"
    static_dir: str | Path = "static"
    template_path: str | Path = "src/index.template.html"

    # Build artifacts (inside dist_dir)
    server_bundle: str = "ssr-server-bundle.json"
    client_manifest: str = "ssr-client-manifest.json"

    # Fixed assets
    favicon: str | Path = "static/favicon.png"
    service_worker: str | Path = "dist/service-worker.js"
    web_manifest: str | Path = "static/manifest.json"

    # Caching
    static_max_age: int = _THIRTY_DAYS
    favicon_max_age: int = _ONE_YEAR

    # Compression
    compression_threshold: int = 0  # Compress everything, even tiny payloads
    compression_level: int = 6

    # Renderer
    render_cache_max: int = 1000
    render_cache_ttl: float = 15 * 60.0
    run_in_new_context: bool = False

    # Development
    dev_poll_interval: float = 0.5

    # Logging
    log_level: str = "info"

    def resolve(self, path: str | Path) -> Path:
        """Anchor *path* at the project root (absolute paths pass through)."""
        return (Path(self.root) / path).resolve()

    @property
    def dist_path(self) -> Path:
        return self.resolve(self.dist_dir)

    @property
    def server_bundle_path(self) -> Path:
        return self.dist_path / self.server_bundle

    @property
    def client_manifest_path(self) -> Path:
        return self.dist_path / self.client_manifest

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> AppConfig:
        """Build a config from environment variables.

        Recognised variables:

        - ``WARBLE_ENV``: ``production`` enables production mode
        - ``HOST`` / ``PORT``: bind address
        - ``WARBLE_ROOT``: project root directory
        - ``WARBLE_LOG_LEVEL``: log level name

        Keyword *overrides* win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "is_production": env.get("WARBLE_ENV", "").lower() == "production",
        }
        if "HOST" in env:
            values["host"] = env["HOST"]
        if "PORT" in env:
            values["port"] = int(env["PORT"])
        if "WARBLE_ROOT" in env:
            values["root"] = env["WARBLE_ROOT"]
        if "WARBLE_LOG_LEVEL" in env:
            values["log_level"] = env["WARBLE_LOG_LEVEL"]
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]
