"""structlog configuration for gtdctl.

Every log line goes to stderr so stdout stays reserved for command output.
Stdlib loggers under ``gtdctl.*`` are routed through the same structlog
processor chain as native structlog loggers.

Two renderers:
- console (default): key=value lines, colored when stderr is a terminal
- JSON (``--log-json``): one object per line, for log shippers
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

LOGGER_NAME = "gtdctl"


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def package_level(*, verbose: bool) -> int:
    """Level for the ``gtdctl`` logger tree.

    Without ``--verbose`` only errors are logged: scan and reference
    warnings already travel in ``ServiceResult.warnings`` and the CLI
    prints them itself.
    """
    return logging.DEBUG if verbose else logging.ERROR


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    vault_root: Path | None = None,
) -> None:
    """Install the stderr handler and structlog processors.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        verbose: DEBUG output for ``gtdctl.*`` loggers.
        log_json: JSON renderer instead of the console renderer.
        vault_root: Bound as ``vault`` on every log line when given.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

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
            _renderer(log_json),
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)
    logging.getLogger(LOGGER_NAME).setLevel(package_level(verbose=verbose))

    structlog.contextvars.clear_contextvars()
    if vault_root is not None:
        structlog.contextvars.bind_contextvars(vault=str(vault_root))
