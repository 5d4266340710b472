# chess_reviewer/utils/logging_config.py
"""
Configures application-wide structured logging using structlog.

Every record, whether emitted through structlog or through a plain stdlib
logger (python-chess, the stockfish wrapper), runs through the same processor
chain and ends up on the root logger. The console is stderr, because stdout
belongs to the review report.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

import structlog
from structlog.types import Processor

SHARED_PROCESSORS: List[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _formatter(renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(foreign_pre_chain=SHARED_PROCESSORS, processor=renderer)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    json_console: bool = False,
    quiet: bool = False,
) -> None:
    """
    Routes structlog and stdlib logging through one set of handlers.

    Args:
        log_level: Minimum level name, e.g. "DEBUG".
        log_file: If given, every record is also appended to this file as one JSON object per line.
        json_console: Render console records as JSON instead of the human-readable format.
        quiet: Do not log to the console at all.
    """
    structlog.configure(
        processors=SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: List[logging.Handler] = []
    if not quiet:
        console_renderer: Processor = (
            structlog.processors.JSONRenderer() if json_console
            else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_formatter(console_renderer))
        handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        handlers.append(file_handler)

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(handlers=handlers, level=log_level.upper(), force=True)
