"""Shared fixtures for haul tests.

Provides a click runner, a temporary project directory and recording fakes
for the collaborators the start command wires together.
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from haul.compiler import Stats
from haul.config import CONFIG_FILENAME


class FakeConsole:
    """Records (channel, message) pairs instead of touching the terminal."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def clear(self) -> None:
        self.calls.append(("clear", ""))

    def info(self, message: str) -> None:
        self.calls.append(("info", message))

    def warn(self, message: str) -> None:
        self.calls.append(("warn", message))

    def error(self, message: str) -> None:
        self.calls.append(("error", message))

    def done(self, message: str) -> None:
        self.calls.append(("done", message))

    @property
    def channels(self) -> list[str]:
        return [channel for channel, _ in self.calls]


class FakeCompiler:
    def __init__(self, config) -> None:
        self.config = config


class FakeServer:
    def __init__(self, compiler, on_invalid, on_compile) -> None:
        self.compiler = compiler
        self.on_invalid = on_invalid
        self.on_compile = on_compile
        self.listen_calls: list[tuple[int, str]] = []
        self.served = False
        self.closed = False

    def listen(self, port, host, callback=None) -> None:
        self.listen_calls.append((port, host))
        if callback is not None:
            callback()

    def serve_forever(self) -> None:
        self.served = True

    def close(self) -> None:
        self.closed = True


def make_stats(returncode: int = 0, output: str = "") -> Stats:
    return Stats(
        returncode=returncode,
        output=output,
        started_at=0.0,
        duration=1.25,
        assets=["index.ios.bundle"],
        hash="0123456789abcdef",
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def console() -> FakeConsole:
    return FakeConsole()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes a webpack.haul.py into tmp_path."""

    def _write(source: str) -> Path:
        path = tmp_path / CONFIG_FILENAME
        path.write_text(textwrap.dedent(source))
        return path

    return _write


@pytest.fixture
def project_dir(tmp_path: Path, write_config: Callable[[str], Path]) -> Path:
    """A project directory with a minimal static config."""
    write_config(
        """
        config = {"entry": "index.js"}
        """
    )
    (tmp_path / "index.js").write_text("console.log('hello');\n")
    return tmp_path
