"""Tests for pagesmith.assembler."""

from __future__ import annotations

from pathlib import Path

from pagesmith.assembler import LISTING_TEMPLATE, Assembler
from pagesmith.models import FragmentText, ListingDirectory, ListingLink


def test_assemble_separates_parts_with_blank_lines() -> None:
    text = Assembler().assemble(FragmentText(header="H", footer="F"), "X")

    assert text == "H\n\nX\n\nF\n"


def test_assemble_keeps_existing_trailing_newlines() -> None:
    text = Assembler().assemble(FragmentText(header="H\n", footer="F\n"), "X\n")

    assert text == "H\n\nX\n\nF\n"


def test_assemble_empty_body_leaves_only_the_two_separators() -> None:
    text = Assembler().assemble(FragmentText(header="H\n", footer="F\n"), "")

    assert text == "H\n\n\nF\n"


def test_assemble_does_not_escape_markup() -> None:
    body = "<div>{{ not a template }}</div>\n# Title *emph*\n"

    text = Assembler().assemble(FragmentText(header="", footer=""), body)

    assert body in text


def test_listing_body_lists_links_in_order() -> None:
    listing = ListingDirectory(name="posts", path=Path("posts"))
    links = [
        ListingLink(text="p1.out", target="posts/p1.out"),
        ListingLink(text="p2.out", target="posts/p2.out"),
    ]

    body = Assembler().listing_body(listing, links)

    assert body == "# posts\n\n- [p1.out](posts/p1.out)\n- [p2.out](posts/p2.out)\n"


def test_listing_body_without_links_is_just_the_heading() -> None:
    listing = ListingDirectory(name="posts", path=Path("posts"))

    assert Assembler().listing_body(listing, []) == "# posts\n"


def test_listing_template_can_be_overridden(tmp_path: Path) -> None:
    (tmp_path / LISTING_TEMPLATE).write_text(
        "## Archive of {{ listing.name }}\n{% for link in links %}\n* <{{ link.target }}>\n{% endfor %}\n",
        encoding="utf-8",
    )
    listing = ListingDirectory(name="posts", path=Path("posts"))

    body = Assembler(tmp_path).listing_body(
        listing, [ListingLink(text="a.html", target="posts/a.html")]
    )

    assert body == "## Archive of posts\n* <posts/a.html>\n"
