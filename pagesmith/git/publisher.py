"""Publishing of rendered output to a git branch or a deployment directory."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

from ..logging import get_logger


class Publisher:
    """Copies final artifacts onto a publish branch or into another directory."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("publisher")

    def publish_branch(
        self,
        repo_path: str | Path,
        output_root: Path,
        files: Sequence[Path],
        *,
        branch: str,
        message: str = "Published.",
    ) -> bool:
        """Check out ``branch``, copy the files over, commit, and switch back."""
        repo = Path(repo_path)
        if not (repo / ".git").exists():
            self.logger.warning("%s is not a git repository; nothing published", repo)
            return False

        self._run(["git", "checkout", branch], cwd=repo)
        try:
            copied = _copy_tree(output_root, files, repo)
            for path in copied:
                self._run(["git", "add", self._to_relative(repo, path)], cwd=repo)

            # Staged changes only; untracked sources and the output tree do not count.
            staged = self._run(
                ["git", "diff", "--cached", "--name-only"], cwd=repo, capture_output=True
            )
            if not staged.strip():
                self.logger.info("Branch %s already up to date", branch)
                return False

            env = os.environ.copy()
            env.setdefault("GIT_AUTHOR_NAME", "pagesmith")
            env.setdefault("GIT_AUTHOR_EMAIL", "pagesmith@example.com")
            env.setdefault("GIT_COMMITTER_NAME", env["GIT_AUTHOR_NAME"])
            env.setdefault("GIT_COMMITTER_EMAIL", env["GIT_AUTHOR_EMAIL"])

            self._run(["git", "commit", "-m", message], cwd=repo, env=env)
            self.logger.info("Published %d files to branch %s", len(copied), branch)
            return True
        finally:
            self._run(["git", "checkout", "-"], cwd=repo)

    def publish_directory(
        self, output_root: Path, files: Sequence[Path], destination: Path
    ) -> List[Path]:
        """Copy the files into ``destination`` keeping their layout."""
        copied = _copy_tree(output_root, files, destination)
        self.logger.info("Published %d files to %s", len(copied), destination)
        return copied

    # ------------------------------------------------------------------
    # Helpers

    @staticmethod
    def _to_relative(repo: Path, file_path: Path) -> str:
        try:
            return file_path.relative_to(repo).as_posix()
        except ValueError:
            return file_path.as_posix()

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        return self._runner(args, cwd=cwd, env=env, capture_output=capture_output)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            env=env,
            check=True,
            text=True,
            capture_output=capture_output,
        )
        if capture_output:
            return completed.stdout
        return ""


def _copy_tree(output_root: Path, files: Sequence[Path], destination: Path) -> List[Path]:
    copied: List[Path] = []
    for source in files:
        target = destination / Path(source).relative_to(output_root)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        copied.append(target)
    return copied
