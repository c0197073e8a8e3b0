"""The HTML page template that wraps every rendered app.

The template is a full HTML document with an outlet marker where the
app markup goes::

    <html>
      <head><title>{{ meta.title }}</title></head>
      <body><!--warble-ssr-outlet--></body>
    </html>

Everything before the marker is the head, everything after it the tail.
Both halves are kida templates rendered with ``meta``, ``url`` and
``state``, so the marker must sit outside any block or loop.

Client-manifest driven markup is injected too: preload/prefetch hints
and stylesheets before ``</head>``, initial state and scripts before
``</body>``.
"""

import json
from html import escape
from typing import Any

from kida import Environment

from warble.context import RenderContext
from warble.errors import ConfigurationError
from warble.rendering.bundle import ClientManifest

OUTLET = "<!--warble-ssr-outlet-->"


def _template_vars(context: RenderContext) -> dict[str, Any]:
    return {"meta": context.meta, "url": context.url, "state": context.state}


def _insert_before(html: str, marker: str, snippet: str, *, fallback_end: bool) -> str:
    if not snippet:
        return html
    if marker in html:
        return html.replace(marker, snippet + marker, 1)
    return html + snippet if fallback_end else snippet + html


def resource_hints(manifest: ClientManifest) -> str:
    """``<link>`` tags for the initial and async client assets."""
    links: list[str] = []
    for file in manifest.initial:
        href = escape(manifest.url(file))
        if file.endswith(".css"):
            links.append(f'<link rel="stylesheet" href="{href}">')
        elif file.endswith(".js"):
            links.append(f'<link rel="preload" href="{href}" as="script">')
    links.extend(
        f'<link rel="prefetch" href="{escape(manifest.url(file))}">'
        for file in manifest.async_
        if file.endswith((".js", ".css"))
    )
    return "".join(links)


def scripts(manifest: ClientManifest) -> str:
    """``<script>`` tags for the initial JavaScript chunks."""
    return "".join(
        f'<script src="{escape(manifest.url(file))}" defer></script>'
        for file in manifest.initial
        if file.endswith(".js")
    )


def state_script(state: dict[str, Any] | None) -> str:
    """Serialize render state for the client to pick up on hydration."""
    if state is None:
        return ""
    payload = json.dumps(state, separators=(",", ":")).replace("<", "\\u003c")
    return f"<script>window.__INITIAL_STATE__={payload}</script>"


class PageTemplate:
    """A parsed page template, split at the outlet.

    Parsed once and shared by every render of a renderer; rendering is
    read-only.
    """

    __slots__ = ("_head", "_tail")

    def __init__(self, source: str, *, env: Environment | None = None) -> None:
        head, marker, tail = source.partition(OUTLET)
        if not marker:
            msg = f"Page template has no {OUTLET} marker"
            raise ConfigurationError(msg)
        env = env or Environment(autoescape=True)
        self._head = env.from_string(head)
        self._tail = env.from_string(tail)

    def render_head(self, context: RenderContext, manifest: ClientManifest | None) -> str:
        html = self._head.render(_template_vars(context))
        if manifest is None:
            return html
        return _insert_before(html, "</head>", resource_hints(manifest), fallback_end=True)

    def render_tail(self, context: RenderContext, manifest: ClientManifest | None) -> str:
        html = self._tail.render(_template_vars(context))
        snippet = state_script(context.state)
        if manifest is not None:
            snippet += scripts(manifest)
        return _insert_before(html, "</body>", snippet, fallback_end=False)
