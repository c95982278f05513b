import logging
import os
import subprocess
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from hashlib import sha256
from pathlib import Path
from typing import Optional

import watchfiles

from haul.config import ResolvedConfig
from haul.events import BuildEvent, BuildFinished, BuildStarting

logger = logging.getLogger(__name__)


ERROR_PREFIX = "ERROR"
WARNING_PREFIX = "WARNING"
COMMAND_NOT_FOUND = 127


@dataclass
class Stats:
    returncode: int
    output: str
    started_at: float
    duration: float
    assets: list[str] = field(default_factory=list)
    hash: str = ""

    @property
    def errors(self) -> list[str]:
        return [line for line in self.output.splitlines() if line.startswith(ERROR_PREFIX)]

    @property
    def warnings(self) -> list[str]:
        return [line for line in self.output.splitlines() if line.startswith(WARNING_PREFIX)]

    def has_errors(self) -> bool:
        return self.returncode != 0 or bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)


class _SourceFilter(watchfiles.DefaultFilter):
    """Default watchfiles filter that also skips the bundler's own output."""

    def __init__(self, output_path: Path) -> None:
        self.output_path = output_path.resolve()
        super().__init__()

    def __call__(self, change: watchfiles.Change, path: str) -> bool:
        return super().__call__(change, path) and not Path(path).resolve().is_relative_to(self.output_path)


def _ensure_dir(dir_path: Path) -> None:
    if not dir_path.exists():
        dir_path.mkdir(parents=True)
    elif not dir_path.is_dir():
        raise ValueError(f"Expected {dir_path} to be a directory")


class Compiler:
    """Runs the external bundler once per build pass."""

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self.last_stats: Optional[Stats] = None

    def _collect_assets(self) -> tuple[list[str], str]:
        build_sha = sha256()
        assets = []
        for path in sorted(self.config.output_path.rglob("*")):
            if not path.is_file():
                continue
            assets.append(path.relative_to(self.config.output_path).as_posix())
            build_sha.update(path.read_bytes())
        return assets, build_sha.hexdigest()

    def run(self) -> Stats:
        config = self.config
        _ensure_dir(config.output_path)

        logger.debug("Running %s", " ".join(config.command))
        started_at = time.time()
        try:
            proc = subprocess.run(
                config.command,
                cwd=config.context,
                env={**os.environ, **config.env},
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
            returncode, output = proc.returncode, proc.stdout
        except FileNotFoundError:
            returncode, output = COMMAND_NOT_FOUND, f"{ERROR_PREFIX} command not found: {config.command[0]}"
        duration = time.time() - started_at

        assets, digest = self._collect_assets()
        stats = Stats(
            returncode=returncode,
            output=output,
            started_at=started_at,
            duration=duration,
            assets=assets,
            hash=digest,
        )
        self.last_stats = stats
        return stats

    def _build(self, on_event: Callable[[BuildEvent], None]) -> None:
        previous = self.last_stats
        had_issues = previous is not None and (previous.has_errors() or previous.has_warnings())
        on_event(BuildStarting(had_issues=had_issues))
        on_event(BuildFinished(stats=self.run()))

    def watch(
        self,
        on_event: Callable[[BuildEvent], None],
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        """Build, then rebuild after every batch of source changes until stopped."""
        self._build(on_event)

        logger.info("Watching for changes")
        changes_iter = watchfiles.watch(
            *self.config.watch_paths,
            watch_filter=_SourceFilter(self.config.output_path),
            stop_event=stop_event,
            raise_interrupt=False,
        )
        for changes in changes_iter:
            logger.info("Detected %d change(s). Rebuilding...", len(changes))
            self._build(on_event)
        logger.info("Stopping watcher")
