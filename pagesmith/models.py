"""Core data models shared across pagesmith components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class SourceDocument:
    """A content document discovered under the project root."""

    path: str
    absolute_path: Path
    mtime_ns: int

    @property
    def name(self) -> str:
        return self.absolute_path.name

    @property
    def parent(self) -> str:
        """Relative POSIX directory of the document ('' at the root)."""
        head, _, _ = self.path.rpartition("/")
        return head

    def read_text(self) -> str:
        return self.absolute_path.read_text(encoding="utf-8")


@dataclass(frozen=True)
class FragmentText:
    """Header and footer text shared by every assembled document."""

    header: str
    footer: str


@dataclass(frozen=True)
class Fragments:
    """Locations of the header and footer fragments."""

    header: Path
    footer: Path

    @property
    def names(self) -> Tuple[str, str]:
        return (self.header.name, self.footer.name)

    def read(self) -> FragmentText:
        return FragmentText(
            header=self.header.read_text(encoding="utf-8"),
            footer=self.footer.read_text(encoding="utf-8"),
        )


@dataclass(frozen=True)
class ListingDirectory:
    """A directory whose documents are enumerated on a generated listing page."""

    name: str
    path: Path


@dataclass(frozen=True)
class ListingLink:
    """One entry on a listing page."""

    text: str
    target: str


class ArtifactKind(str, Enum):
    ASSEMBLED = "assembled"
    RENDERED = "rendered"
    MANIFEST = "manifest"
    COPY = "copy"


@dataclass(frozen=True)
class BuildArtifact:
    """An output tracked by the dependency graph."""

    output: Path
    kind: ArtifactKind
    dependencies: Tuple[Path, ...]
    source: Optional[SourceDocument] = None
    listing: Optional[ListingDirectory] = None
    links: Tuple[ListingLink, ...] = ()

    @property
    def is_final(self) -> bool:
        return self.kind in (ArtifactKind.RENDERED, ArtifactKind.COPY)
