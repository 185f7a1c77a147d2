"""Shared logging configuration for the complication network.

Call ``configure_logging()`` once at a CLI entry point. Library code only
creates module loggers and never configures handlers itself.
"""

import logging


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the root logger with a console handler.

    Only configures if the root logger has no handlers (idempotent).
    """
    root = logging.getLogger()
    if root.handlers:
        return

    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(fmt))
    root.addHandler(console)
    root.setLevel(level)
