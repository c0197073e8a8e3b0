"""Tests for static file serving middleware."""

import os
from pathlib import Path

import pytest

from warble.app import App
from warble.config import AppConfig
from warble.http.request import Request
from warble.http.response import Response
from warble.middleware.static import StaticFiles, cache_control_for, serve
from warble.testing import TestClient


async def fallback(request: Request) -> Response:
    return Response(f"rendered {request.path}")


def _app(*middleware: object) -> App:
    app = App()
    for mw in middleware:
        app.add_middleware(mw)
    app.set_page_handler(fallback)
    return app


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """Create temporary static files for testing."""
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "app.js").write_text("console.log('hello');")
    (dist / "style.css").write_text("body { color: red; }")
    (dist / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    sub = dist / "chunks"
    sub.mkdir()
    (sub / "0.js").write_text("export default 0;")
    (tmp_path / "secret.txt").write_text("top secret")
    return dist


class TestDirectoryMount:
    async def test_serves_file(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.get("/dist/app.js")

        assert response.status == 200
        assert "javascript" in response.content_type
        assert "console.log" in response.text

    async def test_serves_nested_and_binary(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            nested = await client.get("/dist/chunks/0.js")
            image = await client.get("/dist/image.png")

        assert nested.text == "export default 0;"
        assert image.content_type == "image/png"
        assert image.body == b"\x89PNG\r\n\x1a\n"

    async def test_missing_file_falls_through(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.get("/dist/nope.js")

        assert response.text == "rendered /dist/nope.js"

    async def test_prefix_root_falls_through(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.get("/dist")

        assert response.text == "rendered /dist"

    async def test_other_paths_fall_through(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.get("/distillery")

        assert response.text == "rendered /distillery"

    async def test_traversal_is_forbidden(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.get("/dist/../secret.txt")

        assert response.status == 403
        assert "top secret" not in response.text

    async def test_post_falls_through(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.request("POST", "/dist/app.js")

        assert response.text == "rendered /dist/app.js"

    async def test_head_sends_headers_without_body(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.head("/dist/app.js")

        assert response.status == 200
        assert response.header("etag") is not None
        assert response.body_bytes == b""


class TestSingleFileMount:
    async def test_exact_path(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir / "app.js", prefix="/service-worker.js"))

        async with TestClient(app) as client:
            response = await client.get("/service-worker.js")

        assert response.status == 200
        assert "console.log" in response.text

    async def test_sub_path_falls_through(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir / "app.js", prefix="/service-worker.js"))

        async with TestClient(app) as client:
            response = await client.get("/service-worker.js/extra")

        assert response.text == "rendered /service-worker.js/extra"

    async def test_missing_file_falls_through(self, tmp_path: Path) -> None:
        app = _app(StaticFiles(tmp_path / "absent.json", prefix="/manifest.json"))

        async with TestClient(app) as client:
            response = await client.get("/manifest.json")

        assert response.text == "rendered /manifest.json"


class TestValidators:
    async def test_etag_and_last_modified(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            response = await client.get("/dist/app.js")

        assert response.header("etag").startswith('W/"')
        assert response.header("last-modified").endswith("GMT")

    async def test_if_none_match_gives_304(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))

        async with TestClient(app) as client:
            first = await client.get("/dist/app.js")
            second = await client.get(
                "/dist/app.js", headers={"If-None-Match": first.header("etag")}
            )

        assert second.status == 304
        assert second.body == b""

    async def test_changed_file_gets_new_etag(self, static_dir: Path) -> None:
        app = _app(StaticFiles(static_dir, prefix="/dist"))
        target = static_dir / "app.js"

        async with TestClient(app) as client:
            first = await client.get("/dist/app.js")
            target.write_text("console.log('changed, and longer');")
            os.utime(target, (1_000_000, 1_000_000))
            second = await client.get(
                "/dist/app.js", headers={"If-None-Match": first.header("etag")}
            )

        assert second.status == 200
        assert second.header("etag") != first.header("etag")


class TestCachePolicy:
    def test_cache_control_for(self) -> None:
        assert cache_control_for(0) == "public, max-age=0"
        assert cache_control_for(2592000) == "public, max-age=2592000"

    @pytest.mark.parametrize(
        ("cacheable", "production", "expected"),
        [
            (True, True, "public, max-age=2592000"),
            (True, False, "public, max-age=0"),
            (False, True, "public, max-age=0"),
            (False, False, "public, max-age=0"),
        ],
    )
    async def test_serve_lifetime(
        self, static_dir: Path, cacheable: bool, production: bool, expected: str
    ) -> None:
        config = AppConfig(root=static_dir.parent, is_production=production)
        app = _app(serve("dist", "/dist", config, cacheable=cacheable))

        async with TestClient(app) as client:
            response = await client.get("/dist/style.css")

        assert response.status == 200
        assert response.header("cache-control") == expected
