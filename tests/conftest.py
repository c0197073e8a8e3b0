"""Shared fixtures: a throwaway front-end project on disk."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from warble.config import AppConfig

PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head><title>{{ meta.title }}</title><meta name="description" content="{{ meta.description }}"></head>
<body><!--warble-ssr-outlet--></body>
</html>
"""

ENTRY = """\
<div id="app"><h1>{{ meta.title }}</h1><p class="page">{{ page }}</p><p class="url">{{ url }}</p></div>"""

BUNDLE: dict[str, Any] = {
    "entry": "entry-server.html",
    "files": {"entry-server.html": ENTRY},
    "routes": [
        {"path": "/", "template": "pages/home.html", "meta": {"title": "Home"}, "cache": True},
        {
            "path": "/item/{id:int}",
            "template": "pages/item.html",
            "meta": {"title": "Item {id}"},
            "state": {"kind": "item"},
        },
        {"path": "/docs/{rest:path}", "template": "pages/docs.html"},
    ],
}

MANIFEST: dict[str, Any] = {
    "publicPath": "/dist/",
    "all": ["app.js", "app.css", "0.js"],
    "initial": ["app.js", "app.css"],
    "async": ["0.js"],
}

FAVICON = b"\x89PNG\r\n\x1a\nicon"


type BuildWriter = Callable[..., Path]


@pytest.fixture
def write_build(tmp_path: Path) -> BuildWriter:
    """Write (or rewrite) the server bundle and client manifest."""

    def write(
        root: Path | None = None,
        *,
        bundle: dict[str, Any] | str | None = None,
        manifest: dict[str, Any] | None = None,
    ) -> Path:
        dist = (root or tmp_path) / "dist"
        dist.mkdir(parents=True, exist_ok=True)
        bundle_data = BUNDLE if bundle is None else bundle
        bundle_text = bundle_data if isinstance(bundle_data, str) else json.dumps(bundle_data)
        (dist / "ssr-server-bundle.json").write_text(bundle_text)
        (dist / "ssr-client-manifest.json").write_text(json.dumps(manifest or MANIFEST))
        return dist

    return write


@pytest.fixture
def project(tmp_path: Path, write_build: BuildWriter) -> Path:
    """A complete project tree: template, build output, static files."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "index.template.html").write_text(PAGE_TEMPLATE)

    dist = write_build(tmp_path)
    (dist / "app.js").write_text("console.log('app');")
    (dist / "app.css").write_text("body { margin: 0; }")
    (dist / "service-worker.js").write_text("self.addEventListener('fetch', () => {});")

    static = tmp_path / "static"
    static.mkdir()
    (static / "favicon.png").write_bytes(FAVICON)
    (static / "manifest.json").write_text('{"name": "demo"}')
    return tmp_path


@pytest.fixture
def production_config(project: Path) -> AppConfig:
    return AppConfig(root=project, is_production=True)


@pytest.fixture
def dev_config(project: Path) -> AppConfig:
    return AppConfig(root=project, dev_poll_interval=0.01)
