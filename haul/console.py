import logging

import click

from haul.logging_config import DONE

logger = logging.getLogger("haul")


class Console:
    """Terminal output shared by the build notification callbacks."""

    def clear(self) -> None:
        click.clear()

    def info(self, message: str) -> None:
        logger.info(message)

    def warn(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)

    def done(self, message: str) -> None:
        logger.log(DONE, message)
