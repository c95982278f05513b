import logging
import runpy
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any

from haul import messages
from haul.errors import ConfigError, ConfigNotFoundError

logger = logging.getLogger(__name__)


CONFIG_FILENAME = "webpack.haul.py"
CONFIG_NAME = "config"
DEFAULT_PORT = 8081
DEFAULT_PLATFORM = "ios"
DEFAULT_OUTPUT_PATH = "dist"
DEFAULT_COMMAND = (
    "npx", "webpack",
    "--entry", "{entry}",
    "--output-path", "{output_path}",
    "--output-filename", "{filename}",
    "--mode", "{mode}",
)
KNOWN_KEYS = frozenset({"entry", "output_path", "filename", "public_path", "watch", "command", "env"})


@dataclass(frozen=True)
class CommandOptions:
    port: int = DEFAULT_PORT
    dev: bool = True
    platform: str = DEFAULT_PLATFORM


@dataclass(frozen=True)
class ConfigEnv:
    """What a callable config receives to compute its build settings."""
    port: int
    dev: bool
    platform: str
    cwd: Path


@dataclass(frozen=True)
class ResolvedConfig:
    entry: Path
    context: Path
    output_path: Path
    filename: str
    public_path: str
    platform: str
    dev: bool
    port: int
    command: tuple[str, ...]
    watch_paths: tuple[Path, ...]
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def mode(self) -> str:
        return "development" if self.dev else "production"

    @cached_property
    def bundle_path(self) -> Path:
        return self.output_path / self.filename

    @cached_property
    def bundle_url(self) -> str:
        return self.public_path + self.filename


def find_config(directory: Path) -> Path:
    path = directory / CONFIG_FILENAME
    if not path.exists():
        raise ConfigNotFoundError(messages.webpack_config_not_found(directory))
    return path


def load_config(path: Path) -> Any:
    """Execute the config file and return the object it binds to ``config``."""
    logger.debug(f"Loading config from {path}")
    namespace = runpy.run_path(str(path))
    if CONFIG_NAME not in namespace:
        raise ConfigError(f"{path} doesn't define `{CONFIG_NAME}`")
    return namespace[CONFIG_NAME]


def _format_arg(arg: Any, values: Mapping[str, Any]) -> str:
    try:
        return str(arg).format(**values)
    except (KeyError, IndexError) as e:
        raise ConfigError(f"Unknown placeholder {e} in command argument {arg!r}") from e
    except ValueError as e:
        raise ConfigError(f"Malformed command argument {arg!r}: {e}") from e


def _as_tuple(value: Any) -> tuple[Any, ...]:
    if isinstance(value, str):
        return tuple(shlex.split(value))
    return tuple(value)


def make_react_native_config(raw_config: Any, env: ConfigEnv) -> ResolvedConfig:
    """Merge the user's config with the platform and runtime options."""
    user_config = raw_config(env) if callable(raw_config) else raw_config
    if not isinstance(user_config, Mapping):
        raise ConfigError(f"Expected config to be a mapping, got {type(user_config).__name__}")

    unknown = sorted(set(user_config) - KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    if "entry" not in user_config:
        raise ConfigError("Config must define an `entry`")

    cwd = Path(env.cwd)
    entry = cwd / user_config["entry"]
    output_path = cwd / user_config.get("output_path", DEFAULT_OUTPUT_PATH)
    filename = user_config.get("filename", f"index.{env.platform}.bundle")
    public_path = user_config.get("public_path", f"http://localhost:{env.port}/")
    if "watch" in user_config:
        watch_paths = tuple(cwd / p for p in _as_tuple(user_config["watch"]))
    else:
        watch_paths = (entry.parent,)
    missing = [str(p) for p in watch_paths if not p.exists()]
    if missing:
        raise ConfigError(f"Watch paths don't exist: {', '.join(missing)}")

    values = {
        "entry": entry,
        "output_path": output_path,
        "filename": filename,
        "platform": env.platform,
        "mode": "development" if env.dev else "production",
        "dev": "true" if env.dev else "false",
        "port": env.port,
    }
    command = tuple(_format_arg(arg, values) for arg in _as_tuple(user_config.get("command", DEFAULT_COMMAND)))
    if not command:
        raise ConfigError("Config `command` must not be empty")

    bundler_env = {
        "NODE_ENV": values["mode"],
        "HAUL_PLATFORM": env.platform,
        "HAUL_DEV": values["dev"],
    }
    extra_env = user_config.get("env", {})
    if not isinstance(extra_env, Mapping):
        raise ConfigError(f"Config `env` must be a mapping, got {type(extra_env).__name__}")
    bundler_env.update({str(k): str(v) for k, v in extra_env.items()})

    return ResolvedConfig(
        entry=entry,
        context=cwd,
        output_path=output_path,
        filename=filename,
        public_path=public_path,
        platform=env.platform,
        dev=env.dev,
        port=env.port,
        command=command,
        watch_paths=watch_paths,
        env=bundler_env,
    )
