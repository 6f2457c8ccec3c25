"""Route every log record to stderr through structlog.

Library code logs with ``logging.getLogger(__name__)`` or
``structlog.get_logger``; both end in the same ProcessorFormatter, so a
record looks the same whichever API produced it. ``--log-json`` swaps the
console renderer for one JSON object per line.
"""

from __future__ import annotations

import logging
import logging.config
import sys

import structlog
from structlog.types import Processor


def _common_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler; safe to call more than once.

    ``cftctl.*`` loggers emit DEBUG when *verbose*, WARNING otherwise.
    Everything else, networkx included, stays at WARNING.
    """
    renderer: Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": _common_processors(),
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "structlog",
                    "stream": sys.stderr,
                },
            },
            "loggers": {
                "cftctl": {"level": "DEBUG" if verbose else "WARNING"},
                "networkx": {"level": "WARNING"},
            },
            "root": {"level": "WARNING", "handlers": ["stderr"]},
        }
    )

    structlog.configure(
        processors=[
            *_common_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
