"""Tests for pagesmith.logging."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from pagesmith.executor import BuildReport
from pagesmith.logging import (
    WorkerLabelFilter,
    configure_logging,
    get_logger,
    log_build_report,
)


def _flush(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.flush()


def _record(thread_name: str) -> logging.LogRecord:
    record = logging.LogRecord("pagesmith.executor", logging.INFO, __file__, 1, "msg", None, None)
    record.threadName = thread_name
    return record


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger("executor").name == "pagesmith.executor"
    assert get_logger().name == "pagesmith"


def test_worker_label_filter_names_build_threads() -> None:
    labels = WorkerLabelFilter()
    records = [_record("MainThread"), _record("pagesmith-build_3"), _record("watcher")]

    assert all(labels.filter(record) for record in records)
    assert [record.worker for record in records] == ["main", "build-3", "watcher"]


def test_file_sink_keeps_debug_records_while_console_stays_at_info(tmp_path: Path) -> None:
    log_file = tmp_path / "build.log"

    logger = configure_logging(log_file=log_file)
    console, sink = logger.handlers
    get_logger("pipeline").debug("planning %d artifacts", 3)
    _flush(logger)

    assert logger.level == logging.DEBUG
    assert console.level == logging.INFO
    assert sink.level == logging.DEBUG
    line = log_file.read_text(encoding="utf-8").strip()
    assert line.endswith("DEBUG main pagesmith.pipeline: planning 3 artifacts")

    logger = configure_logging()
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1


def test_records_from_build_workers_carry_their_label(tmp_path: Path) -> None:
    log_file = tmp_path / "build.log"
    logger = configure_logging(verbose=True, log_file=log_file)

    worker = threading.Thread(
        target=lambda: get_logger("executor").info("Built %s", "index.html"),
        name="pagesmith-build_0",
    )
    worker.start()
    worker.join()
    _flush(logger)

    assert "INFO build-0 pagesmith.executor: Built index.html" in log_file.read_text(encoding="utf-8")
    configure_logging()


def test_build_report_lists_each_outcome_in_the_file_sink(tmp_path: Path) -> None:
    log_file = tmp_path / "build.log"
    logger = configure_logging(log_file=log_file)
    report = BuildReport(
        built=[Path("build/a.html")],
        skipped=[Path("build/b.html")],
        failed={Path("build/c.html"): RuntimeError("pandoc exploded")},
    )

    log_build_report(report)
    _flush(logger)

    text = log_file.read_text(encoding="utf-8")
    assert "pagesmith.report: built build/a.html" in text
    assert "pagesmith.report: fresh build/b.html" in text
    assert "pagesmith.report: failed build/c.html: pandoc exploded" in text
    assert "Built 1 artifacts, 1 up to date, 1 failed" in text
    configure_logging()
