"""Tests for pagesmith.scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from pagesmith.scanner import ScanError, SourceScanner


def _write(path: Path, content: str = "text\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_scan_returns_matching_documents_sorted(tmp_path: Path) -> None:
    for relative in ("zeta.md", "posts/b.md", "posts/a.md", "alpha.md", "notes.txt"):
        _write(tmp_path / relative)

    documents = SourceScanner().scan(tmp_path, [".md"], [])

    assert [doc.path for doc in documents] == ["alpha.md", "posts/a.md", "posts/b.md", "zeta.md"]
    assert documents[1].absolute_path == (tmp_path / "posts" / "a.md").resolve()
    assert documents[1].parent == "posts"
    assert documents[0].parent == ""
    assert documents[0].mtime_ns == (tmp_path / "alpha.md").stat().st_mtime_ns


def test_scan_is_deterministic(tmp_path: Path) -> None:
    for index in range(20):
        _write(tmp_path / f"dir{index % 3}" / f"doc{index}.md")
    scanner = SourceScanner()

    first = [doc.path for doc in scanner.scan(tmp_path, [".md"], [])]
    second = [doc.path for doc in scanner.scan(tmp_path, [".md"], [])]

    assert first == second == sorted(first)


def test_scan_excludes_exact_filenames_anywhere(tmp_path: Path) -> None:
    _write(tmp_path / "header.md")
    _write(tmp_path / "posts" / "header.md")
    _write(tmp_path / "posts" / "my-header.md")

    documents = SourceScanner().scan(tmp_path, [".md"], ["header.md"])

    assert [doc.path for doc in documents] == ["posts/my-header.md"]


def test_scan_accepts_extensions_without_dot(tmp_path: Path) -> None:
    _write(tmp_path / "a.markdown")
    _write(tmp_path / "b.md")

    documents = SourceScanner().scan(tmp_path, ["markdown", "md"], [])

    assert [doc.path for doc in documents] == ["a.markdown", "b.md"]


def test_scan_skips_output_and_noise_directories(tmp_path: Path) -> None:
    _write(tmp_path / "index.md")
    _write(tmp_path / "build" / "index.md")
    _write(tmp_path / ".git" / "COMMIT.md")
    _write(tmp_path / "node_modules" / "pkg" / "README.md")
    _write(tmp_path / "docs" / "build" / "kept.md")

    documents = SourceScanner().scan(tmp_path, [".md"], [], skip_dirs=["build"])

    assert [doc.path for doc in documents] == ["docs/build/kept.md", "index.md"]


def test_scan_of_empty_directory_returns_nothing(tmp_path: Path) -> None:
    assert SourceScanner().scan(tmp_path, [".md"], []) == []


def test_scan_rejects_missing_root(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(ScanError) as excinfo:
        SourceScanner().scan(missing, [".md"], [])

    assert str(missing) in str(excinfo.value)


def test_scan_rejects_file_root(tmp_path: Path) -> None:
    target = tmp_path / "file.md"
    _write(target)

    with pytest.raises(ScanError, match="not a directory"):
        SourceScanner().scan(target, [".md"], [])
