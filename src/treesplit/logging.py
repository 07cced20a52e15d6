# -*- coding: utf-8 -*-
"""
Logging helpers.

treesplit logs through :mod:`loguru`.  Logging is disabled for the package
when it is imported; call :func:`enable_logging` to route its records to a
sink, and :func:`disable_logging` with the returned handler id to stop.
"""

from __future__ import annotations

import sys

from loguru import logger

PACKAGE_NAME = __name__.split(".")[0]


def _package_filter(record) -> bool:
    return record["name"].split(".")[0] == PACKAGE_NAME


def enable_logging(level="INFO", sink=None) -> int:
    """
    Enable treesplit log records.

    Parameters
    ----------
    level : str or int, default="INFO"
        Minimum level forwarded to ``sink``.
    sink : object, default=sys.stderr
        Any sink accepted by ``loguru.logger.add``.

    Returns
    -------
    int
        Handler id to pass to :func:`disable_logging`.
    """
    logger.enable(PACKAGE_NAME)
    return logger.add(sys.stderr if sink is None else sink, level=level, filter=_package_filter)


def disable_logging(handler_id: int | None = None) -> None:
    """Remove the handler added by :func:`enable_logging` and silence the package."""
    if handler_id is not None:
        logger.remove(handler_id)
    logger.disable(PACKAGE_NAME)
