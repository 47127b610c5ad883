"""Source discovery for the document tree."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .logging import get_logger
from .models import SourceDocument

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
}


class ScanError(RuntimeError):
    """Raised when the project root cannot be walked."""


def _iter_files(root: Path, skip_dirs: Sequence[str]) -> Iterator[Path]:
    skipped = {entry.strip("/") for entry in skip_dirs if entry.strip("/")}

    def _on_error(error: OSError) -> None:
        raise ScanError(f"Unable to read {error.filename}: {error.strerror}") from error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if rel_path in skipped:
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in sorted(filenames):
            yield current_dir / filename


class SourceScanner:
    """Walks the project root to find content documents."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def scan(
        self,
        root: str | Path,
        include_extensions: Iterable[str],
        exclude_names: Iterable[str],
        *,
        skip_dirs: Sequence[str] = (),
    ) -> List[SourceDocument]:
        """Return documents under ``root`` sorted by relative path."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise ScanError(f"Source root not found: {root}")
        if not root_path.is_dir():
            raise ScanError(f"Source root is not a directory: {root}")
        if not os.access(root_path, os.R_OK | os.X_OK):
            raise ScanError(f"Source root is not readable: {root}")

        extensions = tuple(ext if ext.startswith(".") else f".{ext}" for ext in include_extensions)
        excluded = set(exclude_names)

        documents: List[SourceDocument] = []
        for path in _iter_files(root_path, skip_dirs):
            if path.name in excluded or not path.name.endswith(extensions):
                continue
            if path.name in extensions:
                # A dotfile such as ".md" has no stem to render.
                continue
            try:
                mtime_ns = path.stat().st_mtime_ns
            except OSError as exc:
                raise ScanError(f"Unable to stat {path}: {exc}") from exc
            documents.append(
                SourceDocument(
                    path=path.relative_to(root_path).as_posix(),
                    absolute_path=path,
                    mtime_ns=mtime_ns,
                )
            )

        documents.sort(key=lambda document: document.path)
        self.logger.debug("Scanner discovered %d documents under %s", len(documents), root_path)
        return documents


__all__ = ["ScanError", "SourceScanner"]
