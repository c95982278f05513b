import logging
from pathlib import Path
from typing import Optional

from haul import messages
from haul.compiler import Compiler, Stats
from haul.config import CommandOptions, ConfigEnv, find_config, load_config, make_react_native_config
from haul.console import Console

logger = logging.getLogger(__name__)


def bundle(options: CommandOptions, *, cwd: Optional[Path] = None, console: Optional[Console] = None) -> Stats:
    directory = Path.cwd() if cwd is None else cwd
    if console is None:
        console = Console()

    config = make_react_native_config(
        load_config(find_config(directory)),
        ConfigEnv(port=options.port, dev=options.dev, platform=options.platform, cwd=directory),
    )

    logger.info(f"Bundling {config.entry} -> {config.bundle_path}")
    console.info(messages.bundle_compiling(False))
    stats = Compiler(config).run()

    if stats.has_errors():
        console.error(messages.bundle_failed(stats.errors))
    else:
        console.done(messages.bundle_compiled(stats, platform=options.platform))
    return stats
