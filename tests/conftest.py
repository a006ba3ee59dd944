"""Shared test fixtures for wiki-classifier tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest


def render_page(
    heading: str | None = None,
    content: str | None = None,
    links: Sequence[str] = (),
    headers: Sequence[str] = (),
    head_title: str | None = None,
) -> str:
    """Render a minimal MediaWiki-like HTML page."""
    parts = ["<html><head>"]
    if head_title is not None:
        parts.append(f"<title>{head_title}</title>")
    parts.append("</head><body>")
    if heading is not None:
        parts.append(f'<h1 id="firstHeading" class="firstHeading">{heading}</h1>')
    if content is not None:
        parts.append(f'<div id="mw-content-text"><p>{content}</p></div>')
    for header in headers:
        parts.append(f'<h2><span class="mw-headline">{header}</span></h2>')
    for href in links:
        parts.append(f'<a href="{href}">link</a>')
    parts.append("</body></html>")
    return "\n".join(parts)


@pytest.fixture
def page_html() -> Callable[..., str]:
    """Factory rendering wiki-like HTML strings."""
    return render_page


@pytest.fixture
def write_page() -> Callable[..., Path]:
    """Factory writing a wiki-like HTML page to ``directory/name``."""

    def _write(directory: Path, name: str, **kwargs) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(render_page(**kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def training_dirs(tmp_path: Path, write_page) -> tuple[Path, Path]:
    """Two labeled directories: disease pages and unrelated pages."""
    positive = tmp_path / "training" / "positive"
    negative = tmp_path / "training" / "negative"

    write_page(positive, "sertraline.html", heading="Sertraline",
               content="sertraline treats depression and anxiety disorders",
               headers=["Medical uses"],
               links=["http://www.diseasesdatabase.com/ddb123.htm", "/wiki/Depression"])
    write_page(positive, "influenza.html", heading="Influenza",
               content="influenza virus infection causes fever symptoms",
               headers=["Signs and symptoms"],
               links=["/wiki/Fever", "https://www.cdc.gov/flu"])
    write_page(positive, "asthma.html", heading="Asthma",
               content="asthma chronic inflammatory disease airways symptoms treatment",
               headers=["Signs and symptoms", "Treatment"],
               links=["/wiki/Inflammation"])

    write_page(negative, "football.html", heading="Football",
               content="football league match played between teams stadium",
               headers=["History"],
               links=["/wiki/Stadium", "https://www.fifa.com/"])
    write_page(negative, "violin.html", heading="Violin",
               content="violin string instrument played with bow orchestra music",
               headers=["History", "Construction"],
               links=["/wiki/Orchestra"])
    write_page(negative, "paris.html", heading="Paris",
               content="paris capital city france river seine tourism",
               headers=["Geography"],
               links=["/wiki/France", "https://www.paris.fr/"])

    return positive, negative
