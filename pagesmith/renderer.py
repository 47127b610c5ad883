"""Adapters around the external document converter."""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union


class RenderError(RuntimeError):
    """Raised when the renderer fails to convert an assembled document."""


class Renderer(Protocol):
    def render(self, text: str) -> str:
        ...


class PassthroughRenderer:
    """Returns assembled text unchanged."""

    def render(self, text: str) -> str:
        return text


class CommandRenderer:
    """Pipes text through an external command such as pandoc."""

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        *,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> None:
        args = shlex.split(command) if isinstance(command, str) else list(command)
        if not args:
            raise ValueError("Renderer command must not be empty")
        self.args = args
        self.cwd = cwd
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({shlex.join(self.args)!r})"

    def render(self, text: str) -> str:
        """Feed ``text`` on stdin and return the command's stdout."""
        try:
            completed = subprocess.run(
                self.args,
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                cwd=str(self.cwd) if self.cwd is not None else None,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError as exc:
            raise RenderError(
                f"Unable to locate '{self.args[0]}'. Install it or configure renderer.command."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise RenderError(
                f"{self.args[0]} did not finish within {self.timeout} seconds"
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise RenderError(
                f"{self.args[0]} failed with exit code {exc.returncode}: {stderr}"
            ) from exc
        return completed.stdout


__all__ = ["CommandRenderer", "PassthroughRenderer", "RenderError", "Renderer"]
