from __future__ import annotations

import logging
from typing import Callable, Final, Optional

LOGGER_NAME: Final[str] = "aspect_tool"


def get_logger(verbose: Optional[bool] = None) -> logging.Logger:
    """Return the shared tool logger, attaching a console handler once.

    The level is only changed when ``verbose`` is given or on first use.
    """

    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        verbose = bool(verbose)
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s %(message)s", "%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(handler)
    if verbose is not None:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


def compose_log(log_callback: Optional[Callable[[str], None]]) -> Callable[[str], None]:
    logger = get_logger()

    def _log(message: str) -> None:
        text = str(message)
        if log_callback is not None:
            try:
                log_callback(text)
            except Exception:
                logger.exception("Log callback raised an error.")
        logger.info(text)

    return _log
