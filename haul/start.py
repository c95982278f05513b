from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

from haul import messages
from haul.compiler import Compiler, Stats
from haul.config import (
    CommandOptions,
    ConfigEnv,
    ResolvedConfig,
    find_config,
    load_config,
    make_react_native_config,
)
from haul.console import Console
from haul.server import DevServer, create_server


# The dev server always binds here; `--port` only affects the resolved config.
LISTEN_HOST = "127.0.0.1"
LISTEN_PORT = 8081


def start(
    options: CommandOptions,
    *,
    cwd: Optional[Path] = None,
    console: Optional[Console] = None,
    load: Callable[[Path], Any] = load_config,
    make_config: Callable[[Any, ConfigEnv], ResolvedConfig] = make_react_native_config,
    compiler_factory: Callable[[ResolvedConfig], Compiler] = Compiler,
    server_factory: Callable[..., DevServer] = create_server,
) -> DevServer:
    """Start the development server.

    Resolves the project's config, builds a compiler and a server around it
    and binds the server. The caller is responsible for running
    ``serve_forever()`` on the returned server.
    """
    directory = Path.cwd() if cwd is None else cwd
    if console is None:
        console = Console()

    config_path = find_config(directory)
    config = make_config(
        load(config_path),
        ConfigEnv(
            port=options.port,
            dev=options.dev,
            platform=options.platform,
            cwd=directory,
        ),
    )

    compiler = compiler_factory(config)

    def on_invalid(did_have_issues: bool) -> None:
        console.clear()
        if did_have_issues:
            console.warn(messages.bundle_compiling(did_have_issues))
        else:
            console.info(messages.bundle_compiling(did_have_issues))

    def on_compile(stats: Stats) -> None:
        console.clear()
        if stats.has_errors():
            console.error(messages.bundle_failed(stats.errors))
        else:
            console.done(messages.bundle_compiled(stats, platform=options.platform))

    server = server_factory(compiler, on_invalid, on_compile)

    def on_listening() -> None:
        console.info(messages.initial_start_information(config, port=options.port))

    server.listen(LISTEN_PORT, LISTEN_HOST, on_listening)
    return server
