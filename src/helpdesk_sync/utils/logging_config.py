"""Structured logger setup shared across the sync engines."""

import logging
from pythonjsonlogger import jsonlogger


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configure a JSON logger once and reuse it.

    Poll loops log on every failed tick, so records stay flat and carry their
    context (ticket_id, seq, error) through ``extra`` instead of the message.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        "%(levelname)s %(name)s %(message)s %(asctime)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
