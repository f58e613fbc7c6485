"""Observability utilities: logging setup.

Logs go to stderr so that report tables and JSON on stdout stay clean for
piping.
"""

from __future__ import annotations

import logging

# Chatty transport loggers that drown the report engine's own events
_NOISY_LOGGERS = [
    "botocore",
    "boto3",
    "urllib3",
    "httpx",
    "httpcore",
]


def setup_logging(level: str = "WARNING") -> None:
    """Configure application logging.

    Parameters
    ----------
    level: str
        Logging level name (e.g., "DEBUG", "INFO"). Unknown names fall back
        to "WARNING".

    Behavior
    --------
    - Initializes Python's logging with the requested level on stderr.
    - Caps AWS SDK and HTTP client loggers at WARNING unless DEBUG was
      requested, in which case they follow the requested level.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format=("%(asctime)s %(levelname)s %(name)s - %(message)s"),
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    transport_level = max(numeric_level, logging.WARNING)
    if numeric_level <= logging.DEBUG:
        transport_level = logging.DEBUG
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(transport_level)
