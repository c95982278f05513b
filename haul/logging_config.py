import logging
import sys

DONE = 25


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the root logger for the dev server and its watcher thread."""
    logging.addLevelName(DONE, "DONE")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d [%(levelname)s] -- %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    # Clear existing handlers so repeated calls don't duplicate output
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.handlers = []
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
