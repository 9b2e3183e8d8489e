import logging
import sys
from typing import Any, List, Optional

import structlog

from .config import LoggingConfig

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}

# Applied to every stdlib record before rendering; ExtraAdder lifts the
# fields passed through `extra=` into the event dict
SHARED_PROCESSORS: List[Any] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.ExtraAdder(),
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def build_formatter(fmt: str) -> structlog.stdlib.ProcessorFormatter:
    """Console key=value lines, or one JSON object per record for `json`."""
    if fmt == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def setup_logging(config: LoggingConfig, root: Optional[logging.Logger] = None) -> logging.Logger:
    """Configure the root logger (or `root`) from the logging section of the config.

    stdout carries the MCP stdio transport, so it is only used when asked for.
    """
    if config.output == "stderr":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    elif config.output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(config.output)

    handler.setFormatter(build_formatter(config.format))

    if root is None:
        root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    root.setLevel(LEVELS.get(config.level, logging.INFO))

    # The transport libraries are chatty at debug level
    logging.getLogger("elastic_transport").setLevel(max(root.level, logging.WARNING))
    return root
