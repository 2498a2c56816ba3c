"""Rich-backed logging for the CLI."""
from __future__ import annotations

import logging

from rich.logging import RichHandler

_LOGGER_CONFIGURED = False

# Third-party loggers that flood DEBUG output with transport and font details.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "matplotlib")


def configure_logging(debug: bool = False, *, echo_sql: bool = False) -> None:
    """Install a single RichHandler on the root logger; later calls are no-ops."""
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=debug, show_path=debug)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if echo_sql else logging.WARNING)
    _LOGGER_CONFIGURED = True
