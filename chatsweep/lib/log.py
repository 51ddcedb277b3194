"""Structured logging for the extraction engine."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from chatsweep.config import ChatsweepSettings


class _StderrProxy:
    """Write to whatever ``sys.stderr`` is at call time.

    ``PrintLoggerFactory`` keeps the file object it was given, so pytest's
    capture swapping stderr out would leave cached loggers writing to a
    closed stream.
    """

    def write(self, s: str) -> int:
        return sys.stderr.write(s)

    def flush(self) -> None:
        sys.stderr.flush()

    def isatty(self) -> bool:
        return sys.stderr.isatty()


_stderr_proxy: TextIO = _StderrProxy()  # type: ignore[assignment]


def configure_logging(verbose: bool = False, json_logs: bool = False) -> None:
    """Route engine events to stderr, as console lines or JSON objects.

    Scan-time parse failures are emitted at debug level, so ``verbose`` is
    the switch that makes skipped keys visible.

    Loggers are not cached: engine modules bind theirs at import time, and
    a later call here (switching level or renderer) must still reach them.
    """
    level = logging.DEBUG if verbose else logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_stderr_proxy),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(settings: ChatsweepSettings) -> None:
    configure_logging(verbose=settings.verbose, json_logs=settings.json_logs)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


__all__ = ["configure_logging", "configure_from_settings", "get_logger"]
