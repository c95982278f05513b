"""Tests for loading and resolving webpack.haul.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from haul.config import (
    ConfigEnv,
    find_config,
    load_config,
    make_react_native_config,
)
from haul.errors import ConfigError, ConfigNotFoundError


@pytest.fixture
def env(tmp_path: Path) -> ConfigEnv:
    return ConfigEnv(port=8081, dev=True, platform="ios", cwd=tmp_path)


class TestFindConfig:
    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigNotFoundError, match="webpack.haul.py"):
            find_config(tmp_path)

    def test_found(self, project_dir: Path) -> None:
        assert find_config(project_dir) == project_dir / "webpack.haul.py"


class TestLoadConfig:
    def test_static_mapping(self, project_dir: Path) -> None:
        assert load_config(project_dir / "webpack.haul.py") == {"entry": "index.js"}

    def test_callable(self, write_config) -> None:
        path = write_config(
            """
            def config(env):
                return {"entry": f"index.{env.platform}.js"}
            """
        )
        assert callable(load_config(path))

    def test_missing_name(self, write_config) -> None:
        path = write_config("entry = 'index.js'\n")
        with pytest.raises(ConfigError, match="doesn't define `config`"):
            load_config(path)

    def test_errors_propagate(self, write_config) -> None:
        path = write_config("raise RuntimeError('boom')\n")
        with pytest.raises(RuntimeError, match="boom"):
            load_config(path)


class TestMakeReactNativeConfig:
    def test_defaults(self, env: ConfigEnv, tmp_path: Path) -> None:
        config = make_react_native_config({"entry": "index.js"}, env)

        assert config.entry == tmp_path / "index.js"
        assert config.context == tmp_path
        assert config.output_path == tmp_path / "dist"
        assert config.filename == "index.ios.bundle"
        assert config.public_path == "http://localhost:8081/"
        assert config.bundle_url == "http://localhost:8081/index.ios.bundle"
        assert config.watch_paths == (tmp_path,)
        assert config.mode == "development"
        assert config.command == (
            "npx", "webpack",
            "--entry", str(tmp_path / "index.js"),
            "--output-path", str(tmp_path / "dist"),
            "--output-filename", "index.ios.bundle",
            "--mode", "development",
        )
        assert config.env == {"NODE_ENV": "development", "HAUL_PLATFORM": "ios", "HAUL_DEV": "true"}

    def test_callable_receives_env(self, env: ConfigEnv) -> None:
        seen = []

        def raw(config_env):
            seen.append(config_env)
            return {"entry": f"index.{config_env.platform}.js"}

        config = make_react_native_config(raw, env)

        assert seen == [env]
        assert config.entry.name == "index.ios.js"

    def test_production_android(self, tmp_path: Path) -> None:
        env = ConfigEnv(port=3000, dev=False, platform="android", cwd=tmp_path)
        config = make_react_native_config({"entry": "index.js"}, env)

        assert config.filename == "index.android.bundle"
        assert config.public_path == "http://localhost:3000/"
        assert config.command[-1] == "production"
        assert config.env["NODE_ENV"] == "production"
        assert config.env["HAUL_DEV"] == "false"

    def test_overrides(self, env: ConfigEnv, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        (tmp_path / "assets").mkdir()
        config = make_react_native_config(
            {
                "entry": "src/main.js",
                "output_path": "build/out",
                "filename": "main.jsbundle",
                "watch": ["src", "assets"],
                "command": "node bundle.js {entry} {output_path}/{filename} --platform={platform}",
                "env": {"DEBUG": 1},
            },
            env,
        )

        assert config.output_path == tmp_path / "build/out"
        assert config.watch_paths == (tmp_path / "src", tmp_path / "assets")
        assert config.command == (
            "node", "bundle.js",
            str(tmp_path / "src/main.js"),
            f"{tmp_path / 'build/out'}/main.jsbundle",
            "--platform=ios",
        )
        assert config.env["DEBUG"] == "1"

    def test_watches_entry_directory_by_default(self, env: ConfigEnv, tmp_path: Path) -> None:
        """Without `watch` the directory holding the entry is watched."""
        (tmp_path / "src").mkdir()

        config = make_react_native_config({"entry": "src/main.js"}, env)

        assert config.watch_paths == (tmp_path / "src",)

    def test_is_frozen(self, env: ConfigEnv) -> None:
        config = make_react_native_config({"entry": "index.js"}, env)
        with pytest.raises(AttributeError):
            config.filename = "other.bundle"

    @pytest.mark.parametrize(
        ("raw", "match"),
        [
            (["index.js"], "Expected config to be a mapping"),
            ({}, "must define an `entry`"),
            ({"entry": "index.js", "plugins": []}, "Unknown config keys: plugins"),
            ({"entry": "index.js", "command": ["run", "{nope}"]}, "Unknown placeholder"),
            ({"entry": "index.js", "command": []}, "must not be empty"),
            ({"entry": "index.js", "command": ["run", "-e{"]}, "Malformed command argument"),
            ({"entry": "index.js", "env": ["DEBUG=1"]}, "`env` must be a mapping"),
            ({"entry": "index.js", "watch": ["nope"]}, "Watch paths don't exist"),
            ({"entry": "missing/index.js"}, "Watch paths don't exist"),
        ],
    )
    def test_invalid(self, env: ConfigEnv, raw, match: str) -> None:
        with pytest.raises(ConfigError, match=match):
            make_react_native_config(raw, env)
