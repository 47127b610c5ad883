"""Incremental execution of the dependency graph."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet, Callable, Dict, List, Optional

from .graph import DependencyGraph
from .logging import WORKER_THREAD_PREFIX, get_logger
from .models import BuildArtifact

POLICY_CONTINUE = "continue"
POLICY_FAIL_FAST = "fail-fast"


class DependencyFailedError(RuntimeError):
    """Recorded for an artifact whose dependency failed to build."""

    def __init__(self, dependency: Path) -> None:
        self.dependency = dependency
        super().__init__(f"dependency {dependency} failed to build")


class BuildAbortedError(RuntimeError):
    """Recorded for an artifact that was never scheduled because the build stopped."""


@dataclass
class BuildReport:
    """Outcome of one executor run."""

    built: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    failed: Dict[Path, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class BuildError(RuntimeError):
    """Aggregates every artifact that failed during a build."""

    def __init__(self, report: BuildReport) -> None:
        self.report = report
        lines = [f"{len(report.failed)} artifact(s) failed to build:"]
        for output, cause in report.failed.items():
            lines.append(f"  {output}: {cause}")
        super().__init__("\n".join(lines))


class BuildExecutor:
    """Rebuilds stale artifacts in dependency order."""

    def __init__(
        self,
        *,
        jobs: Optional[int] = None,
        policy: str = POLICY_CONTINUE,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if policy not in (POLICY_CONTINUE, POLICY_FAIL_FAST):
            raise ValueError(f"Unknown failure policy: {policy!r}")
        self.jobs = jobs or os.cpu_count() or 1
        self.policy = policy
        self.deadline = deadline
        self._clock = clock
        self.logger = get_logger("executor")

    def execute(
        self, graph: DependencyGraph, produce: Callable[[BuildArtifact], None]
    ) -> BuildReport:
        """Run ``produce`` for every stale artifact; raise BuildError on any failure."""
        index = {output: position for position, output in enumerate(graph.outputs)}
        sorter = graph.sorter()
        report = BuildReport()
        rebuilt: set[Path] = set()
        halted: Optional[str] = None
        deadline_at = self._clock() + self.deadline if self.deadline is not None else None

        with ThreadPoolExecutor(
            max_workers=self.jobs, thread_name_prefix=WORKER_THREAD_PREFIX
        ) as pool:
            pending: Dict[Future, BuildArtifact] = {}
            while sorter.is_active():
                if halted is None and deadline_at is not None and self._clock() >= deadline_at:
                    halted = "build deadline exceeded"
                    self.logger.warning("Build deadline reached; no further artifacts will start")

                for output in sorted(sorter.get_ready(), key=index.__getitem__):
                    artifact = graph[output]
                    failed_dependency = next(
                        (dep for dep in graph.artifact_dependencies(output) if dep in report.failed),
                        None,
                    )
                    if failed_dependency is not None:
                        report.failed[output] = DependencyFailedError(failed_dependency)
                        self.logger.debug("Not building %s: %s failed", output, failed_dependency)
                        sorter.done(output)
                    elif halted is not None:
                        report.failed[output] = BuildAbortedError(halted)
                        sorter.done(output)
                    elif not self.is_stale(artifact, rebuilt):
                        self.logger.debug("Up to date: %s", output)
                        report.skipped.append(output)
                        sorter.done(output)
                    else:
                        self.logger.debug("Building %s (%s)", output, artifact.kind.value)
                        pending[pool.submit(produce, artifact)] = artifact

                if not pending:
                    continue

                timeout = None
                if halted is None and deadline_at is not None:
                    timeout = max(0.0, deadline_at - self._clock())
                finished, _ = wait(list(pending), timeout=timeout, return_when=FIRST_COMPLETED)
                for future in finished:
                    artifact = pending.pop(future)
                    try:
                        future.result()
                    except Exception as exc:
                        report.failed[artifact.output] = exc
                        self._log_exception(f"Failed to build {artifact.output}", exc)
                        if self.policy == POLICY_FAIL_FAST and halted is None:
                            halted = f"stopped after {artifact.output} failed"
                    else:
                        self.logger.info("Built %s", artifact.output)
                        report.built.append(artifact.output)
                        rebuilt.add(artifact.output)
                    sorter.done(artifact.output)

        report.built.sort(key=index.__getitem__)
        report.skipped.sort(key=index.__getitem__)
        report.failed = dict(sorted(report.failed.items(), key=lambda item: index[item[0]]))
        if report.failed:
            raise BuildError(report)
        return report

    @staticmethod
    def is_stale(artifact: BuildArtifact, rebuilt: AbstractSet[Path] = frozenset()) -> bool:
        """Missing output, missing or newer dependency, or a dependency rebuilt this run."""
        try:
            output_mtime = artifact.output.stat().st_mtime_ns
        except OSError:
            return True
        for dependency in artifact.dependencies:
            if dependency in rebuilt:
                return True
            try:
                if dependency.stat().st_mtime_ns > output_mtime:
                    return True
            except OSError:
                return True
        return False

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = [
    "BuildAbortedError",
    "BuildError",
    "BuildExecutor",
    "BuildReport",
    "DependencyFailedError",
    "POLICY_CONTINUE",
    "POLICY_FAIL_FAST",
]
