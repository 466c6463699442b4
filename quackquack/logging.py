"""Logging helpers for quackquack."""

from __future__ import annotations

import logging

_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"component": "%(name)s", "message": "%(message)s"}'
)


def setup_structured_logging(level: int = logging.INFO, component: str | None = None) -> logging.Logger:
    """Emit JSON formatted records.

    Without *component* the root logger is configured.  With a component
    (e.g. ``"quackquack"``) only that logger gets its own handler, which
    leaves the host application's logging setup alone.
    """
    if component is None:
        logging.basicConfig(level=level, format=_FORMAT)
        return logging.getLogger()

    logger = logging.getLogger(component)
    logger.setLevel(level)
    if not any(getattr(h, "_quack_structured", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._quack_structured = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
