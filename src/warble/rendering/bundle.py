"""Build artifacts: the server bundle and the client manifest.

Both are JSON files written by the front-end build into the output
directory. They are parsed into frozen dataclasses here and validated
once, so the renderer never has to second-guess their shape.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from warble.errors import BundleLoadError


@dataclass(frozen=True, slots=True)
class BundleRoute:
    """A page route declared by the server bundle.

    ``path`` uses ``{name}`` / ``{name:int}`` / ``{name:path}`` segments.
    ``meta`` values overwrite the render context's meta and may contain
    ``{name}`` placeholders filled from path parameters.
    """

    path: str
    template: str
    meta: Mapping[str, str] = field(default_factory=dict)
    state: Mapping[str, Any] | None = None
    cache: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BundleRoute:
        try:
            path = data["path"]
            template = data["template"]
        except KeyError as exc:
            msg = f"Bundle route is missing {exc.args[0]!r}: {dict(data)!r}"
            raise BundleLoadError(msg) from None
        meta = data.get("meta") or {}
        if not isinstance(meta, Mapping):
            msg = f"Bundle route {path!r}: 'meta' must be an object"
            raise BundleLoadError(msg)
        return cls(
            path=str(path),
            template=str(template),
            meta={str(k): str(v) for k, v in meta.items()},
            state=data.get("state"),
            cache=bool(data.get("cache", False)),
        )


@dataclass(frozen=True, slots=True)
class ServerBundle:
    """The server-side build of the front-end application.

    ``files`` maps template names to kida source. ``entry`` names the
    root template every page renders through.
    """

    entry: str
    files: Mapping[str, str]
    routes: tuple[BundleRoute, ...] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ServerBundle:
        """Validate and convert parsed bundle JSON."""
        if not isinstance(data, Mapping):
            msg = "Server bundle must be a JSON object"
            raise BundleLoadError(msg)

        entry = data.get("entry")
        files = data.get("files")
        if not isinstance(entry, str) or not entry:
            msg = "Server bundle has no 'entry'"
            raise BundleLoadError(msg)
        if not isinstance(files, Mapping):
            msg = "Server bundle has no 'files' object"
            raise BundleLoadError(msg)
        if entry not in files:
            msg = f"Server bundle entry {entry!r} is not among its files"
            raise BundleLoadError(msg)

        raw_routes = data.get("routes")
        routes = None
        if raw_routes is not None:
            if not isinstance(raw_routes, list):
                msg = "Server bundle 'routes' must be a list"
                raise BundleLoadError(msg)
            routes = tuple(BundleRoute.from_mapping(r) for r in raw_routes)

        return cls(
            entry=entry,
            files={str(name): str(source) for name, source in files.items()},
            routes=routes,
        )


@dataclass(frozen=True, slots=True)
class ClientManifest:
    """Which client assets the browser needs, relative to ``public_path``."""

    public_path: str = "/"
    all: tuple[str, ...] = ()
    initial: tuple[str, ...] = ()
    async_: tuple[str, ...] = ()

    def url(self, file: str) -> str:
        """Public URL of a client asset."""
        return self.public_path.rstrip("/") + "/" + file.lstrip("/")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ClientManifest:
        """Validate and convert parsed manifest JSON."""
        if not isinstance(data, Mapping):
            msg = "Client manifest must be a JSON object"
            raise BundleLoadError(msg)

        def files(key: str) -> tuple[str, ...]:
            value = data.get(key) or []
            if not isinstance(value, list):
                msg = f"Client manifest {key!r} must be a list"
                raise BundleLoadError(msg)
            return tuple(str(f) for f in value)

        return cls(
            public_path=str(data.get("publicPath", "/")),
            all=files("all"),
            initial=files("initial"),
            async_=files("async"),
        )


def _read_json(path: Path, what: str) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read {what} {path}: {exc.strerror or exc}"
        raise BundleLoadError(msg) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON in {what} {path}: {exc}"
        raise BundleLoadError(msg) from exc


def load_server_bundle(path: str | Path) -> ServerBundle:
    """Read and validate a server bundle JSON file."""
    return ServerBundle.from_mapping(_read_json(Path(path), "server bundle"))


def load_client_manifest(path: str | Path) -> ClientManifest:
    """Read and validate a client manifest JSON file."""
    return ClientManifest.from_mapping(_read_json(Path(path), "client manifest"))
