"""Concatenation of fragments and bodies into intermediate documents."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from .models import FragmentText, ListingDirectory, ListingLink

LISTING_TEMPLATE = "listing.md.j2"


def _terminated(text: str) -> str:
    # An empty part contributes no lines.
    if not text or text.endswith("\n"):
        return text
    return f"{text}\n"


class Assembler:
    """Wraps document bodies in the shared header and footer."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        search_path: List[str] = []
        if templates_dir is not None:
            search_path.append(str(templates_dir))
        search_path.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def assemble(self, fragments: FragmentText, body: str) -> str:
        """Return header, blank line, body, blank line, footer."""
        return "\n".join(
            _terminated(part) for part in (fragments.header, body, fragments.footer)
        )

    def listing_body(self, listing: ListingDirectory, links: Sequence[ListingLink]) -> str:
        """Render the heading and link list for a listing page."""
        try:
            template = self._env.get_template(LISTING_TEMPLATE)
        except TemplateNotFound as exc:  # pragma: no cover - packaged template always exists
            raise FileNotFoundError(f"Listing template not found: {exc.name}") from exc
        rendered = template.render(listing=listing, links=list(links))
        return rendered.rstrip("\n") + "\n"


__all__ = ["Assembler", "LISTING_TEMPLATE"]
