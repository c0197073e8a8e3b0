"""Server-side rendering of pre-built bundles.

Public API::

    from warble.rendering import (
        RendererOptions,
        create_bundle_renderer,
        load_client_manifest,
        load_server_bundle,
    )

    bundle = load_server_bundle("dist/ssr-server-bundle.json")
    renderer = create_bundle_renderer(bundle, RendererOptions(template=html))
"""

from warble.rendering.bundle import (
    BundleRoute,
    ClientManifest,
    ServerBundle,
    load_client_manifest,
    load_server_bundle,
)
from warble.rendering.renderer import (
    BundleRenderer,
    Renderer,
    RendererOptions,
    create_bundle_renderer,
)
from warble.rendering.template import OUTLET, PageTemplate

__all__ = [
    "OUTLET",
    "BundleRenderer",
    "BundleRoute",
    "ClientManifest",
    "PageTemplate",
    "Renderer",
    "RendererOptions",
    "ServerBundle",
    "create_bundle_renderer",
    "load_client_manifest",
    "load_server_bundle",
]
