"""Logging setup.

Applies per-category log levels from ``inspection_web.config`` so the http
client and uvicorn access logs can be quietened without touching the rest.

Usage:
    from inspection_web.log_config import setup_logging
    setup_logging()   # once, at startup
"""

import logging
import sys

from inspection_web import config


# config attribute -> logger names it controls
_CATEGORY_MAP: dict[str, list[str]] = {
    "LOG_LEVEL_HTTP": [
        "httpx",
        "httpcore",
    ],
    "LOG_LEVEL_UVICORN": [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
    ],
    "LOG_LEVEL_API": [
        "inspection_web.api_client",
    ],
}


def setup_logging() -> None:
    """Configure root and per-category logger levels."""
    root = logging.getLogger()
    root.setLevel(_parse_level(config.LOG_LEVEL))

    # uvicorn normally installs a handler; scripts and tests may not
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)-8s %(name)s: %(message)s"))
        root.addHandler(handler)

    for attr, logger_names in _CATEGORY_MAP.items():
        level = _parse_level(getattr(config, attr, "INFO"))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s, http=%s, uvicorn=%s, api=%s",
        config.LOG_LEVEL,
        config.LOG_LEVEL_HTTP,
        config.LOG_LEVEL_UVICORN,
        config.LOG_LEVEL_API,
    )


def _parse_level(raw: str) -> int:
    """Level name to logging constant, INFO when unknown."""
    numeric = getattr(logging, str(raw).upper(), None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO
