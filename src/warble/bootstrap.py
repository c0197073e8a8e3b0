"""Assemble a ready-to-serve App from an AppConfig.

Production and development share the middleware chain and differ only
in where renderers come from:

- production: the bundle and manifest are read once, here, and the
  renderer is installed before the first request can arrive.
- development: the dev server installs a renderer for every build it
  sees; page requests wait until the first one is in.
"""

import logging
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache

from warble.app import App
from warble.config import AppConfig
from warble.errors import ConfigurationError
from warble.middleware.compression import Compression
from warble.middleware.favicon import Favicon
from warble.middleware.static import serve
from warble.rendering.bundle import (
    ClientManifest,
    ServerBundle,
    load_client_manifest,
    load_server_bundle,
)
from warble.rendering.renderer import BundleRenderer, RendererOptions, create_bundle_renderer
from warble.server.dev import setup_dev_server
from warble.server.render import direct, gated

logger = logging.getLogger("warble.server")

type DevSetup = Callable[..., Any]


class RendererFactory:
    """Builds bundle renderers that share one page template.

    The template is read from disk once; every renderer gets its own
    bounded render cache, so cached pages never outlive their bundle.
    """

    __slots__ = ("_config", "_template")

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        template_path = config.resolve(config.template_path)
        try:
            self._template = template_path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot read page template {template_path}: {exc}"
            raise ConfigurationError(msg) from exc

    @property
    def template(self) -> str:
        return self._template

    def create(
        self,
        bundle: ServerBundle,
        client_manifest: ClientManifest | None = None,
    ) -> BundleRenderer:
        config = self._config
        return create_bundle_renderer(
            bundle,
            RendererOptions(
                template=self._template,
                client_manifest=client_manifest,
                cache=TTLCache(maxsize=config.render_cache_max, ttl=config.render_cache_ttl),
                basedir=config.dist_path,
                run_in_new_context=config.run_in_new_context,
            ),
        )


def create_app(
    config: AppConfig | None = None,
    *,
    dev_setup: DevSetup = setup_dev_server,
) -> App:
    """Create the SSR app for *config*.

    In production a missing or malformed bundle raises
    ``BundleLoadError`` right here. In development *dev_setup* is called
    as ``dev_setup(app, on_update, config=config)`` and is expected to
    call ``on_update(bundle, client_manifest)`` once per build.
    """
    config = config or AppConfig()
    app = App(config)
    factory = RendererFactory(config)

    if config.is_production:
        bundle = load_server_bundle(config.server_bundle_path)
        client_manifest = load_client_manifest(config.client_manifest_path)
        app.renderers.swap(factory.create(bundle, client_manifest))
        logger.debug("Loaded server bundle from %s", config.server_bundle_path)
    else:

        def on_update(bundle: ServerBundle, client_manifest: ClientManifest) -> None:
            app.renderers.swap(factory.create(bundle, client_manifest))

        dev_setup(app, on_update, config=config)

    app.add_middleware(
        Compression(threshold=config.compression_threshold, level=config.compression_level)
    )
    app.add_middleware(Favicon(config.resolve(config.favicon), max_age=config.favicon_max_age))
    app.add_middleware(serve(config.dist_dir, "/dist", config, cacheable=True))
    app.add_middleware(serve(config.service_worker, "/service-worker.js", config))
    app.add_middleware(serve(config.web_manifest, "/manifest.json", config, cacheable=True))

    if config.is_production:
        app.set_page_handler(direct(app.renderers))
    else:
        app.set_page_handler(gated(app.renderers))
    return app
