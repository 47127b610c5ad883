"""Pipeline orchestration for build/clean/publish flows."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Union

from .assembler import Assembler
from .config import ConfigError, SiteConfig
from .executor import BuildError, BuildExecutor, BuildReport
from .git.publisher import Publisher
from .graph import DependencyGraph, GraphBuilder
from .logging import get_logger, log_build_report
from .models import ArtifactKind, BuildArtifact, Fragments, ListingDirectory
from .renderer import CommandRenderer, PassthroughRenderer, Renderer
from .scanner import SourceScanner


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class Pipeline:
    """Coordinates scanning, planning, building and publishing of a site."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        scanner: SourceScanner | None = None,
        graph_builder: GraphBuilder | None = None,
        assembler: Assembler | None = None,
        renderer: Renderer | None = None,
        executor: BuildExecutor | None = None,
        publisher: Publisher | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or SourceScanner()
        self.graph_builder = graph_builder or GraphBuilder(
            config.output_root, output_extension=config.output.extension
        )
        self.assembler = assembler or Assembler(config.templates_dir)
        self.renderer = renderer or self._default_renderer(config)
        self.executor = executor or BuildExecutor(
            jobs=config.build.jobs,
            policy=config.build.failure_policy,
            deadline=config.build.deadline,
        )
        self.publisher = publisher or Publisher()
        self.fragments = Fragments(header=config.header_path, footer=config.footer_path)
        self.logger = get_logger("pipeline")

    @staticmethod
    def _default_renderer(config: SiteConfig) -> Renderer:
        if not config.renderer.command:
            return PassthroughRenderer()
        return CommandRenderer(
            config.renderer.command, cwd=config.root, timeout=config.renderer.timeout
        )

    def plan(self) -> DependencyGraph:
        """Scan the project root and derive the dependency graph."""
        for label, path in (("header", self.fragments.header), ("footer", self.fragments.footer)):
            if not path.is_file():
                raise ConfigError(f"{label} fragment not found: {path}")

        root = self.config.root
        exclude_names = list(self.config.sources.exclude_names) + list(self.fragments.names)
        documents = self.scanner.scan(
            root,
            self.config.sources.include_extensions,
            exclude_names,
            skip_dirs=[self._output_dir_relative()],
        )

        listings: List[ListingDirectory] = []
        for name in self.config.listings:
            path = root / name
            if not path.is_dir():
                self.logger.warning("Listing directory %s does not exist; its listing will be empty", name)
            listings.append(ListingDirectory(name=name, path=path))

        copies = []
        for name in self.config.copy:
            source = root / name
            if not source.is_file():
                self.logger.warning("Asset %s not found; skipping copy", name)
                continue
            copies.append((name, source))

        return self.graph_builder.build(documents, listings, self.fragments, copies=copies)

    def build(self) -> BuildReport:
        """Plan and execute a build, raising BuildError if any artifact failed."""
        return self._execute(self.plan())

    def _execute(self, graph: DependencyGraph) -> BuildReport:
        self.logger.info("Building %d artifacts into %s", len(graph), self.config.output_root)
        try:
            report = self.executor.execute(graph, self.produce)
        except BuildError as exc:
            log_build_report(exc.report)
            raise
        log_build_report(report)
        return report

    def produce(self, artifact: BuildArtifact) -> None:
        """Production step for a single artifact."""
        if artifact.kind is ArtifactKind.ASSEMBLED:
            if artifact.source is None:
                raise ValueError(f"Assembled artifact {artifact.output} has no source document")
            text = self.assembler.assemble(self.fragments.read(), artifact.source.read_text())
            _write_atomic(artifact.output, text)
        elif artifact.kind is ArtifactKind.MANIFEST:
            if artifact.listing is None:
                raise ValueError(f"Manifest artifact {artifact.output} has no listing directory")
            body = self.assembler.listing_body(artifact.listing, artifact.links)
            _write_atomic(artifact.output, self.assembler.assemble(self.fragments.read(), body))
        elif artifact.kind is ArtifactKind.RENDERED:
            (intermediate,) = artifact.dependencies
            text = intermediate.read_text(encoding="utf-8")
            _write_atomic(artifact.output, self.renderer.render(text))
        elif artifact.kind is ArtifactKind.COPY:
            (source,) = artifact.dependencies
            artifact.output.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, artifact.output)
        else:  # pragma: no cover - enum is exhaustive
            raise ValueError(f"Unknown artifact kind: {artifact.kind}")

    def clean(self) -> List[Path]:
        """Remove every planned artifact and then the empty output directories."""
        graph = self.plan()
        removed: List[Path] = []
        for output in graph.outputs:
            if output.exists():
                output.unlink()
                removed.append(output)
                self.logger.debug("Removed %s", output)

        output_root = self.config.output_root
        if output_root.is_dir():
            for dirpath, _, _ in sorted(os.walk(output_root), key=lambda entry: len(entry[0]), reverse=True):
                directory = Path(dirpath)
                if not any(directory.iterdir()):
                    directory.rmdir()
        self.logger.info("Removed %d generated artifacts", len(removed))
        return removed

    def publish(self) -> Union[bool, List[Path]]:
        """Build, then copy final artifacts to the configured publish target."""
        graph = self.plan()
        self._execute(graph)
        files = [artifact.output for artifact in graph if artifact.is_final]
        publish = self.config.publish
        if publish.directory is not None:
            return self.publisher.publish_directory(
                self.config.output_root, files, publish.directory
            )
        if not (self.config.root / ".git").exists():
            raise ConfigError(
                f"{self.config.root} is not a git repository; set publish.directory to publish elsewhere"
            )
        return self.publisher.publish_branch(
            self.config.root,
            self.config.output_root,
            files,
            branch=publish.branch,
            message=publish.message,
        )

    def _output_dir_relative(self) -> str:
        try:
            return self.config.output_root.resolve().relative_to(self.config.root.resolve()).as_posix()
        except ValueError:
            return ""


__all__ = ["Pipeline"]
