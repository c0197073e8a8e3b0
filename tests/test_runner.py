"""End-to-end tests against a real listening socket."""

import socket

import httpx
import pytest

from warble.bootstrap import create_app
from warble.config import AppConfig
from warble.server.runner import start_server


class TestStartServer:
    async def test_serves_over_http_and_closes(
        self, production_config: AppConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        app = create_app(production_config)

        with caplog.at_level("INFO", logger="warble.server"):
            handle = await start_server(app, port=0)
        try:
            await handle.ready
            async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{handle.port}") as client:
                page = await client.get("/item/9")
                missing = await client.get("/missing")
                script = await client.get("/dist/app.js")
        finally:
            await handle.close()

        assert handle.port > 0
        assert f"Server started at localhost:{handle.port}" in caplog.text

        assert page.status_code == 200
        assert page.headers["content-type"] == "text/html"
        assert page.headers["content-encoding"] == "gzip"
        assert "<title>Item 9</title>" in page.text

        assert missing.status_code == 404
        assert missing.text == "404 | Page Not Found"

        assert script.headers["cache-control"] == "public, max-age=2592000"

    async def test_close_is_idempotent_and_releases_port(self, production_config: AppConfig) -> None:
        handle = await start_server(create_app(production_config), port=0)
        port = handle.port

        await handle.close()
        await handle.close()

        assert handle.closed
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", port))

    async def test_port_in_use_raises(self, production_config: AppConfig) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen()
            taken = sock.getsockname()[1]

            with pytest.raises(OSError):
                await start_server(create_app(production_config), port=taken)
