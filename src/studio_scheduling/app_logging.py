"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Attach one stream handler to the package logger; safe to call twice."""
    logger = logging.getLogger("studio_scheduling")
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
