import json
import logging

import click

from haul.bundle import bundle as _bundle
from haul.config import DEFAULT_PLATFORM, DEFAULT_PORT, CommandOptions
from haul.logging_config import configure_logging
from haul.messages import server_stopped
from haul.start import start as _start

# Configure logging
configure_logging()

logger = logging.getLogger(__name__)


class JsonBoolParamType(click.ParamType):
    """Parses the value as JSON and accepts only `true` or `false`."""
    name = "true|false"

    def convert(self, value, param, ctx):
        if isinstance(value, bool):
            return value
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            self.fail(f"{value!r} is not valid JSON", param, ctx)
        if not isinstance(parsed, bool):
            self.fail(f"expected true or false, got {value!r}", param, ctx)
        return parsed


JSON_BOOL = JsonBoolParamType()

dev_option = click.option("--dev", type=JSON_BOOL, default=True, show_default=True, help="Whether to build in development mode")
platform_option = click.option(
    "--platform", default=DEFAULT_PLATFORM, show_default=True, metavar="[ios|android]", help="Platform to bundle for"
)


@click.group()
def cli():
    pass


@cli.command()
@click.option("--port", type=int, default=DEFAULT_PORT, show_default=True, metavar="[number]", help="Port to run your webpack server")
@dev_option
@platform_option
def start(port: int, dev: bool, platform: str):
    """Starts a new webpack server."""
    server = _start(CommandOptions(port=port, dev=dev, platform=platform))
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info(server_stopped())
    finally:
        server.close()


@cli.command()
@dev_option
@platform_option
def bundle(dev: bool, platform: str):
    """Builds the bundle once and exits."""
    stats = _bundle(CommandOptions(dev=dev, platform=platform))
    if stats.has_errors():
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
