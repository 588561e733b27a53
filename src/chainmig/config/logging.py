"""Diagnostic logging for migration runs.

The migration service logs one ``migrate.<stage>`` event per pipeline step
(``migrate.start``, ``migrate.loaded``, ``migrate.resolved``, ``migrate.issued``,
``migrate.written``, ``migrate.copied``, ``migrate.done``) with the service
name bound as ``service``. Write and copy failures are logged at error level
before the failure result is returned.

Events go to stderr so the result on stdout stays parseable with ``--json``.
``-v`` shows the stage events; ``--log-json`` turns each one into a single
JSON line for log collectors.
"""

from __future__ import annotations

import logging
import sys

import structlog

APP_LOGGER = "chainmig"


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Install the stderr handler used by every ``chainmig`` command.

    Called once per CLI invocation; a repeat call replaces the handler.
    Library loggers such as ``cryptography`` stay at WARNING regardless
    of *verbose*.

    Args:
        verbose: Show the ``migrate.*`` stage events (DEBUG and up on the
            ``chainmig`` logger). Otherwise only warnings and failures.
        log_json: One JSON object per event instead of console lines.
    """
    app_level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(app_level)
