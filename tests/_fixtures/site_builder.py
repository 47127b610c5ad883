"""Helper utilities for constructing throwaway site trees in tests."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Iterable, List, Mapping

from pagesmith.config import SiteConfig, validate_config
from pagesmith.executor import BuildExecutor
from pagesmith.pipeline import Pipeline
from pagesmith.renderer import RenderError


class RecordingRenderer:
    """Identity renderer that remembers every input and can fail on a marker."""

    def __init__(self, fail_marker: str | None = None) -> None:
        self.fail_marker = fail_marker
        self.calls: List[str] = []

    def render(self, text: str) -> str:
        self.calls.append(text)
        if self.fail_marker is not None and self.fail_marker in text:
            raise RenderError(f"cannot render document containing {self.fail_marker}")
        return text


class SiteBuilder:
    """Utility for writing files into a site root and running the pipeline on it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = (tmp_path / "site").resolve()
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries verbatim into the site root."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

    def config(self, **overrides: object) -> SiteConfig:
        config = SiteConfig(root=self.root)
        for key, value in overrides.items():
            setattr(config, key, value)
        validate_config(config)
        return config

    def pipeline(
        self,
        config: SiteConfig | None = None,
        *,
        renderer: RecordingRenderer | None = None,
        policy: str = "continue",
    ) -> Pipeline:
        return Pipeline(
            config or self.config(),
            renderer=renderer or RecordingRenderer(),
            executor=BuildExecutor(jobs=1, policy=policy),
        )

    def output(self, relative: str) -> Path:
        return self.root / "build" / relative

    def set_mtime(self, paths: Iterable[Path], seconds: float) -> None:
        ns = int(seconds * 1_000_000_000)
        for path in paths:
            os.utime(path, ns=(ns, ns))

    def age_everything(self) -> float:
        """Push sources and their directories into the past, outputs slightly after.

        Returns the base time.
        """
        base = time.time() - 1000
        output_root = self.root / "build"
        for path in [self.root, *self.root.rglob("*")]:
            inside_output = path == output_root or output_root in path.parents
            offset = 10 if inside_output else 0
            self.set_mtime([path], base + offset)
        return base


__all__ = ["RecordingRenderer", "SiteBuilder"]
