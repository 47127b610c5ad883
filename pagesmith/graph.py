"""Dependency graph construction for the document pipeline."""

from __future__ import annotations

import os
from graphlib import CycleError, TopologicalSorter
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Iterator, List, Sequence

from .logging import get_logger
from .models import (
    ArtifactKind,
    BuildArtifact,
    Fragments,
    ListingDirectory,
    ListingLink,
    SourceDocument,
)


class GraphError(RuntimeError):
    """Raised when the dependency graph cannot be constructed or ordered."""


class NamingCollisionError(GraphError):
    """Raised when two artifacts resolve to the same output path."""

    def __init__(self, output: Path, first: BuildArtifact, second: BuildArtifact) -> None:
        self.output = output
        self.first = first
        self.second = second
        super().__init__(
            f"Output path {output} is produced by both {_describe(first)} and {_describe(second)}"
        )


def _describe(artifact: BuildArtifact) -> str:
    if artifact.source is not None:
        return f"{artifact.kind.value} artifact of {artifact.source.path}"
    if artifact.listing is not None:
        return f"{artifact.kind.value} artifact of listing {artifact.listing.name}"
    return f"{artifact.kind.value} artifact"


class DependencyGraph:
    """Ordered mapping of output paths to the artifacts that produce them."""

    def __init__(self) -> None:
        self._artifacts: Dict[Path, BuildArtifact] = {}

    def add(self, artifact: BuildArtifact) -> None:
        existing = self._artifacts.get(artifact.output)
        if existing is not None:
            raise NamingCollisionError(artifact.output, existing, artifact)
        self._artifacts[artifact.output] = artifact

    def __getitem__(self, output: Path) -> BuildArtifact:
        return self._artifacts[output]

    def __contains__(self, output: object) -> bool:
        return output in self._artifacts

    def __iter__(self) -> Iterator[BuildArtifact]:
        return iter(self._artifacts.values())

    def __len__(self) -> int:
        return len(self._artifacts)

    @property
    def outputs(self) -> List[Path]:
        return list(self._artifacts)

    def artifact_dependencies(self, output: Path) -> List[Path]:
        """Dependencies of ``output`` that are themselves produced by the graph."""
        return [dep for dep in self._artifacts[output].dependencies if dep in self._artifacts]

    def dependents(self, output: Path) -> List[Path]:
        return [
            artifact.output
            for artifact in self._artifacts.values()
            if output in artifact.dependencies
        ]

    def sorter(self) -> TopologicalSorter:
        """Return a prepared sorter over artifact-to-artifact edges."""
        sorter: TopologicalSorter = TopologicalSorter()
        for output in self._artifacts:
            sorter.add(output, *self.artifact_dependencies(output))
        try:
            sorter.prepare()
        except CycleError as exc:
            raise GraphError(f"Dependency cycle detected: {exc.args[1]}") from exc
        return sorter

    def order(self) -> List[Path]:
        """Full build order; ties keep insertion order."""
        index = {output: position for position, output in enumerate(self._artifacts)}
        sorter = self.sorter()
        ordered: List[Path] = []
        while sorter.is_active():
            ready = sorted(sorter.get_ready(), key=index.__getitem__)
            ordered.extend(ready)
            sorter.done(*ready)
        return ordered


class GraphBuilder:
    """Derives build artifacts from documents, listings and assets."""

    def __init__(
        self,
        output_root: Path,
        *,
        output_extension: str = "html",
        listing_suffix: str = ".listing.md",
    ) -> None:
        self.output_root = Path(output_root)
        self.output_extension = output_extension.lstrip(".")
        self.listing_suffix = listing_suffix
        self.logger = get_logger("graph")

    def build(
        self,
        sources: Sequence[SourceDocument],
        listings: Iterable[ListingDirectory],
        fragments: Fragments,
        *,
        copies: Iterable[tuple[str, Path]] = (),
    ) -> DependencyGraph:
        graph = DependencyGraph()
        reserved = set(fragments.names)
        fragment_deps = (fragments.header, fragments.footer)

        documents = [doc for doc in sources if doc.name not in reserved]
        for doc in sources:
            if doc.name in reserved:
                self.logger.debug("Ignoring fragment file %s as a document", doc.path)

        rendered_by_doc: Dict[str, Path] = {}
        for doc in documents:
            assembled = self.output_root / doc.path
            rendered = self.rendered_path(doc.path)
            graph.add(
                BuildArtifact(
                    output=assembled,
                    kind=ArtifactKind.ASSEMBLED,
                    dependencies=(fragments.header, doc.absolute_path, fragments.footer),
                    source=doc,
                )
            )
            graph.add(
                BuildArtifact(
                    output=rendered,
                    kind=ArtifactKind.RENDERED,
                    dependencies=(assembled,),
                    source=doc,
                )
            )
            rendered_by_doc[doc.path] = rendered

        for listing in listings:
            manifest = self.output_root / f"{listing.name}{self.listing_suffix}"
            final = self.output_root / f"{listing.name}.{self.output_extension}"
            members = [doc for doc in documents if doc.parent == listing.name]
            rendered_members = [rendered_by_doc[doc.path] for doc in members]
            links = tuple(
                ListingLink(
                    text=path.name,
                    target=Path(os.path.relpath(path, final.parent)).as_posix(),
                )
                for path in rendered_members
            )
            # The directory's own mtime changes when documents are added or removed.
            directory_deps = (listing.path,) if listing.path.is_dir() else ()
            graph.add(
                BuildArtifact(
                    output=manifest,
                    kind=ArtifactKind.MANIFEST,
                    dependencies=fragment_deps + tuple(rendered_members) + directory_deps,
                    listing=listing,
                    links=links,
                )
            )
            graph.add(
                BuildArtifact(
                    output=final,
                    kind=ArtifactKind.RENDERED,
                    dependencies=(manifest,),
                    listing=listing,
                )
            )

        for name, source_path in copies:
            graph.add(
                BuildArtifact(
                    output=self.output_root / name,
                    kind=ArtifactKind.COPY,
                    dependencies=(source_path,),
                )
            )

        self.logger.debug(
            "Planned %d artifacts for %d documents", len(graph), len(documents)
        )
        return graph

    def rendered_path(self, relative: str) -> Path:
        """Output path of the final artifact for a source at ``relative``."""
        posix = PurePosixPath(relative)
        return self.output_root / posix.with_suffix(f".{self.output_extension}")


__all__ = ["DependencyGraph", "GraphBuilder", "GraphError", "NamingCollisionError"]
