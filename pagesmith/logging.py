"""Logging setup for pagesmith builds.

Artifacts are produced on ``pagesmith-build`` worker threads, so records
carry a short ``worker`` label naming the thread that emitted them. The
console shows it only in verbose mode; the file sink always records it,
together with the per-artifact outcome written by :func:`log_build_report`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .executor import BuildReport

_LOGGER_NAME = "pagesmith"
WORKER_THREAD_PREFIX = "pagesmith-build"

_CONSOLE_FORMAT = "[pagesmith] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[pagesmith] %(levelname)s (%(worker)s) %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(worker)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the pagesmith hierarchy."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


class WorkerLabelFilter(logging.Filter):
    """Tag records with ``worker``: ``main``, ``build-N`` or the raw thread name."""

    def filter(self, record: logging.LogRecord) -> bool:
        thread = record.threadName or ""
        if thread == "MainThread":
            record.worker = "main"
        elif thread.startswith(WORKER_THREAD_PREFIX):
            # ThreadPoolExecutor names its threads "<prefix>_<n>".
            record.worker = "build-" + thread[len(WORKER_THREAD_PREFIX) :].lstrip("_")
        else:
            record.worker = thread
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure console output and an optional file sink for the pagesmith logger.

    The file sink captures DEBUG records even when the console is at INFO, so a
    ``--log-file`` run keeps the full build report without flooding the terminal.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if (verbose or log_file is not None) else logging.INFO)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    labels = WorkerLabelFilter()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.addFilter(labels)
    console.setFormatter(
        logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.addFilter(labels)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


def log_build_report(report: "BuildReport") -> None:
    """Log one line per artifact outcome at DEBUG, then an INFO summary."""
    logger = get_logger("report")
    for output in report.built:
        logger.debug("built %s", output)
    for output in report.skipped:
        logger.debug("fresh %s", output)
    for output, cause in report.failed.items():
        logger.debug("failed %s: %s", output, cause)
    logger.info(
        "Built %d artifacts, %d up to date, %d failed",
        len(report.built),
        len(report.skipped),
        len(report.failed),
    )


__all__ = [
    "WORKER_THREAD_PREFIX",
    "WorkerLabelFilter",
    "configure_logging",
    "get_logger",
    "log_build_report",
]
