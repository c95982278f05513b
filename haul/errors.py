import click


class HaulError(click.ClickException):
    """Base error reported by click with exit status 1."""


class ConfigNotFoundError(HaulError):
    pass


class ConfigError(HaulError):
    """The config file loaded but doesn't describe a usable build."""
