"""Human readable text for everything the CLI prints.

All functions are pure: they render a jinja2 template from their arguments
and return the resulting string.
"""
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Union

from jinja2 import StrictUndefined, Template

if TYPE_CHECKING:
    from haul.compiler import Stats
    from haul.config import ResolvedConfig


def _template(source: str) -> Template:
    return Template(source, undefined=StrictUndefined)


_CONFIG_NOT_FOUND = _template(
    "Couldn't find `webpack.haul.py` config at {{ directory }}.\n"
    "Create one or run haul from your project root."
)

_COMPILING = _template(
    "{% if did_have_issues %}"
    "Previous build had issues. Compiling again..."
    "{% else %}"
    "Compiling..."
    "{% endif %}"
)

_FAILED = _template(
    "Failed to compile."
    "{% for error in errors %}\n  {{ error }}{% endfor %}"
)

_COMPILED = _template(
    "Built {{ platform }} bundle in {{ '%.2f'|format(stats.duration) }}s\n"
    "  assets: {{ stats.assets|length }}, hash: {{ stats.hash[:12] }}"
    "{% if warnings %}\n  {{ warnings|length }} warning(s):"
    "{% for warning in warnings %}\n    {{ warning }}{% endfor %}{% endif %}"
)

_START_INFO = _template(
    "Haul is now bundling your React Native app, starting from:\n"
    "  {{ config.entry }}\n"
    "\n"
    "A fresh build may take longer than usual.\n"
    "Packager server running on http://localhost:{{ port }}\n"
    "Bundle will be available at {{ config.bundle_url }}"
)


def webpack_config_not_found(directory: Union[str, Path]) -> str:
    return _CONFIG_NOT_FOUND.render(directory=directory)


def bundle_compiling(did_have_issues: bool) -> str:
    return _COMPILING.render(did_have_issues=did_have_issues)


def bundle_failed(errors: Sequence[str] = ()) -> str:
    return _FAILED.render(errors=errors)


def bundle_compiled(stats: "Stats", platform: str) -> str:
    return _COMPILED.render(stats=stats, platform=platform, warnings=stats.warnings)


def initial_start_information(webpack_config: "ResolvedConfig", port: int) -> str:
    return _START_INFO.render(config=webpack_config, port=port)


def server_stopped() -> str:
    return "Stopping server"
