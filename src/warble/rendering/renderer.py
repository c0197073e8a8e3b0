"""Bundle renderer: turns a render context into a stream of HTML.

A renderer is built from a server bundle plus options and is immutable
afterwards. Development rebuilds create a new renderer; they never
patch an existing one, so a render in flight always sees one bundle.

Render pipeline for one context::

    1. Match context.path against the bundle routes (no match -> 404)
    2. Apply the route's meta, params and state to the context
    3. Render the app body through the bundle's entry template
       (or take it from the cache for cacheable routes)
    4. Yield head, body chunks, tail

The first body chunk is produced before the head is yielded, so errors
raised early in the app template surface before any byte is sent.
"""

import logging
from collections.abc import AsyncIterator, Iterator, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from kida import ChoiceLoader, DictLoader, Environment, FileSystemLoader

from warble.context import Meta, RenderContext
from warble.errors import RenderError
from warble.rendering.bundle import ClientManifest, ServerBundle
from warble.rendering.routes import PageMatch, PageRoutes
from warble.rendering.template import PageTemplate

logger = logging.getLogger("warble.render")


class Renderer(Protocol):
    """Anything that can stream a page for a render context."""

    def render_to_stream(self, context: RenderContext) -> AsyncIterator[str]: ...


@dataclass(frozen=True, slots=True)
class RendererOptions:
    """How a bundle renderer is assembled.

    ``cache`` is any mutable mapping; pass a size- and age-bounded one
    (e.g. ``cachetools.TTLCache``) to keep memory in check.
    ``basedir`` is searched for templates the bundle itself lacks.
    With ``run_in_new_context`` every render gets a freshly built
    template environment, trading throughput for isolation.
    """

    template: str | None = None
    client_manifest: ClientManifest | None = None
    cache: MutableMapping[str, str] | None = None
    basedir: str | Path | None = None
    run_in_new_context: bool = False
    autoescape: bool = True


def _format_meta(value: str, params: dict[str, str]) -> str:
    try:
        return value.format_map(params)
    except (KeyError, IndexError, ValueError):
        return value


class BundleRenderer:
    """Renders pages from a ``ServerBundle``.

    Usage::

        renderer = create_bundle_renderer(bundle, RendererOptions(template=html))
        context = RenderContext(url="/items/42")
        async for chunk in renderer.render_to_stream(context):
            ...
    """

    __slots__ = ("_bundle", "_env", "_options", "_routes", "_template")

    def __init__(self, bundle: ServerBundle, options: RendererOptions) -> None:
        self._bundle = bundle
        self._options = options
        self._routes = PageRoutes(bundle.routes) if bundle.routes is not None else None
        self._env: Environment | None = (
            None if options.run_in_new_context else self._build_environment()
        )
        self._template = PageTemplate(options.template) if options.template is not None else None

    @property
    def bundle(self) -> ServerBundle:
        return self._bundle

    @property
    def options(self) -> RendererOptions:
        return self._options

    # -- Public API --

    async def render_to_stream(self, context: RenderContext) -> AsyncIterator[str]:
        """Stream the page for *context*.

        Raises ``RenderError(code=404)`` when no bundle route matches,
        before anything is yielded.
        """
        page = self._resolve(context)
        manifest = self._options.client_manifest

        body = self._render_app(context, page)
        first = next(body, "")

        if self._template is not None:
            yield self._template.render_head(context, manifest)
        if first:
            yield first
        for chunk in body:
            if chunk:
                yield chunk
        if self._template is not None:
            yield self._template.render_tail(context, manifest)

    async def render_to_string(self, context: RenderContext) -> str:
        """Render the whole page into one string."""
        return "".join([chunk async for chunk in self.render_to_stream(context)])

    # -- Internals --

    def _resolve(self, context: RenderContext) -> PageMatch | None:
        if self._routes is None:
            return None

        match = self._routes.match(context.path)
        if match is None:
            raise RenderError(f"No page matches {context.path!r}", code=404)

        route = match.route
        context.params = dict(match.params)
        if route.meta:
            context.meta = Meta(
                title=_format_meta(route.meta.get("title", context.meta.title), match.params),
                description=_format_meta(
                    route.meta.get("description", context.meta.description), match.params
                ),
            )
        if route.state is not None:
            context.state = dict(route.state)
        return match

    def _render_app(self, context: RenderContext, page: PageMatch | None) -> Iterator[str]:
        cache = self._options.cache
        cacheable = cache is not None and page is not None and page.route.cache
        key = context.url

        if cacheable:
            cached = cache.get(key)
            if cached is not None:
                logger.debug("Render cache hit: %s", key)
                yield cached
                return

        env = self._env if self._env is not None else self._build_environment()
        template = env.get_template(self._bundle.entry)
        variables: dict[str, Any] = {
            "page": page.route.template if page is not None else None,
            "meta": context.meta,
            "url": context.url,
            "params": context.params,
            "state": context.state,
        }

        if not cacheable:
            yield from template.render_stream(variables)
            return

        html = template.render(variables)
        cache[key] = html
        yield html

    def _build_environment(self) -> Environment:
        loaders: list[Any] = [DictLoader(dict(self._bundle.files))]
        if self._options.basedir is not None:
            loaders.append(FileSystemLoader(str(self._options.basedir)))
        return Environment(
            loader=ChoiceLoader(loaders),
            autoescape=self._options.autoescape,
        )


def create_bundle_renderer(
    bundle: ServerBundle,
    options: RendererOptions | None = None,
) -> BundleRenderer:
    """Create a renderer for *bundle*.

    The page template (if any) is parsed here, so a template without an
    outlet fails at creation rather than on the first request.
    """
    return BundleRenderer(bundle, options or RendererOptions())
