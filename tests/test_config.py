"""Tests for warble.config: AppConfig frozen dataclass."""

from pathlib import Path

import pytest

from warble.config import AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8080
        assert cfg.is_production is False
        assert cfg.dist_dir == "dist"
        assert cfg.static_max_age == 2592000
        assert cfg.compression_threshold == 0
        assert cfg.render_cache_max == 1000
        assert cfg.render_cache_ttl == 900.0
        assert cfg.run_in_new_context is False

    def test_override(self) -> None:
        cfg = AppConfig(host="0.0.0.0", port=3000, is_production=True)

        assert cfg.host == "0.0.0.0"
        assert cfg.port == 3000
        assert cfg.is_production is True

    def test_frozen(self) -> None:
        cfg = AppConfig()

        with pytest.raises(AttributeError):
            cfg.port = 1  # type: ignore[misc]


class TestPaths:
    def test_resolve_anchors_at_root(self, tmp_path: Path) -> None:
        cfg = AppConfig(root=tmp_path)

        assert cfg.resolve("static/favicon.png") == tmp_path.resolve() / "static" / "favicon.png"

    def test_absolute_path_passes_through(self, tmp_path: Path) -> None:
        cfg = AppConfig(root="/somewhere/else")
        target = tmp_path / "x.html"

        assert cfg.resolve(target) == target.resolve()

    def test_build_artifact_paths(self, tmp_path: Path) -> None:
        cfg = AppConfig(root=tmp_path, dist_dir="build")

        assert cfg.dist_path == tmp_path.resolve() / "build"
        assert cfg.server_bundle_path.name == "ssr-server-bundle.json"
        assert cfg.client_manifest_path.parent == cfg.dist_path


class TestFromEnv:
    def test_empty_environment_gives_development_defaults(self) -> None:
        cfg = AppConfig.from_env({})

        assert cfg.is_production is False
        assert cfg.port == 8080

    def test_reads_variables(self) -> None:
        cfg = AppConfig.from_env(
            {
                "WARBLE_ENV": "Production",
                "HOST": "0.0.0.0",
                "PORT": "9000",
                "WARBLE_ROOT": "/srv/app",
                "WARBLE_LOG_LEVEL": "debug",
            }
        )

        assert cfg.is_production is True
        assert cfg.host == "0.0.0.0"
        assert cfg.port == 9000
        assert cfg.root == "/srv/app"
        assert cfg.log_level == "debug"

    def test_other_env_names_mean_development(self) -> None:
        assert AppConfig.from_env({"WARBLE_ENV": "staging"}).is_production is False

    def test_overrides_win(self) -> None:
        cfg = AppConfig.from_env({"PORT": "9000"}, port=1234)

        assert cfg.port == 1234
